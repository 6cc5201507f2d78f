from __future__ import annotations

from . import core, logging, metrics
from .core.acl import Acl
from .core.assertions import AggregateMode, Assertion, AssertionAggregate
from .core.errors import (
    AclError,
    DuplicateResourceError,
    DuplicateRoleError,
    EmptyAggregateError,
    InvalidArgumentError,
    InvalidAssertionError,
    InvalidOperationError,
    InvalidRuleTypeError,
    NoResolverError,
    UnknownParentError,
    UnknownResourceError,
    UnknownRoleError,
    UnresolvedAssertionError,
)
from .core.model import Operation, Resource, Role, Rule, RuleType
from .logging.decision_logger import DecisionLogger

try:
    from importlib.metadata import PackageNotFoundError, version
except Exception:  # pragma: no cover
    PackageNotFoundError = Exception  # type: ignore
    version = None  # type: ignore


def _detect_version() -> str:
    if version is None:
        return "0.1.0"
    try:
        return version("aclx")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _detect_version()

__all__ = [
    "Acl",
    "AggregateMode",
    "Assertion",
    "AssertionAggregate",
    "DecisionLogger",
    "Operation",
    "Resource",
    "Role",
    "Rule",
    "RuleType",
    "AclError",
    "DuplicateResourceError",
    "DuplicateRoleError",
    "EmptyAggregateError",
    "InvalidArgumentError",
    "InvalidAssertionError",
    "InvalidOperationError",
    "InvalidRuleTypeError",
    "NoResolverError",
    "UnknownParentError",
    "UnknownResourceError",
    "UnknownRoleError",
    "UnresolvedAssertionError",
    "core",
    "logging",
    "metrics",
    "__version__",
]
