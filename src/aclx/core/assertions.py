from __future__ import annotations

import importlib
import logging
from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol, Union, runtime_checkable

from .errors import (
    EmptyAggregateError,
    InvalidArgumentError,
    InvalidAssertionError,
    NoResolverError,
)
from .model import _coerce_enum
from .ports import AssertionResolver

logger = logging.getLogger("aclx.assertions")


@runtime_checkable
class Assertion(Protocol):
    """Predicate guarding a rule.

    Called with the engine, the role and resource objects the caller passed
    to ``is_allowed`` (or the registered instances when plain ids were used)
    and the queried privilege (``None`` when querying all privileges).
    """

    def __call__(self, acl: Any, role: Any, resource: Any, privilege: Optional[str]) -> bool: ...


class AggregateMode(str, Enum):
    ALL = "all"
    ANY = "any"


AssertionRef = Union[Assertion, str]


def _load_dotted(path: str) -> Any:
    """Import ``pkg.module.attr`` and return the attribute."""
    if "." not in path:
        raise ImportError(f"not a dotted path: {path!r}")
    module_name, attr = path.rsplit(".", 1)
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ImportError(f"{module_name!r} has no attribute {attr!r}") from e


class AssertionAggregate:
    """Combine several assertions under ALL or ANY semantics.

    Elements may be callables or names. A name is first tried as a dotted
    import path (a class found there is instantiated), then looked up in
    ``resolver``.
    """

    def __init__(
        self,
        assertions: Iterable[AssertionRef] = (),
        *,
        mode: Union[AggregateMode, str] = AggregateMode.ALL,
        resolver: Optional[AssertionResolver] = None,
    ) -> None:
        self._assertions: List[AssertionRef] = []
        self._mode = AggregateMode.ALL
        self.mode = mode
        self.resolver = resolver
        self.add_assertions(assertions)

    @property
    def mode(self) -> AggregateMode:
        return self._mode

    @mode.setter
    def mode(self, value: Union[AggregateMode, str]) -> None:
        try:
            self._mode = _coerce_enum(AggregateMode, value)
        except ValueError:
            raise InvalidArgumentError(f"invalid assertion aggregate mode: {value!r}") from None

    @property
    def assertions(self) -> List[AssertionRef]:
        return list(self._assertions)

    def add_assertion(self, assertion: AssertionRef) -> "AssertionAggregate":
        self._assertions.append(assertion)
        return self

    def add_assertions(self, assertions: Iterable[AssertionRef]) -> "AssertionAggregate":
        for assertion in assertions:
            self.add_assertion(assertion)
        return self

    def clear_assertions(self) -> "AssertionAggregate":
        self._assertions.clear()
        return self

    def __call__(self, acl: Any, role: Any, resource: Any, privilege: Optional[str]) -> bool:
        if not self._assertions:
            raise EmptyAggregateError("no assertions have been aggregated")

        for ref in self._assertions:
            assertion = self._resolve(ref)
            result = bool(assertion(acl, role, resource, privilege))
            if self._mode is AggregateMode.ALL and not result:
                return False
            if self._mode is AggregateMode.ANY and result:
                return True

        return self._mode is AggregateMode.ALL

    # --- helpers -------------------------------------------------------------

    def _resolve(self, ref: AssertionRef) -> Assertion:
        if not isinstance(ref, str):
            return ref

        try:
            target = _load_dotted(ref)
        except ImportError:
            target = None
        if target is not None:
            if isinstance(target, type):
                target = target()
            if not callable(target):
                raise InvalidAssertionError(f'assertion "{ref}" is not callable')
            return target

        if self.resolver is None:
            raise NoResolverError(f'no assertion resolver is set; cannot look up "{ref}"')
        try:
            found = self.resolver.get(ref)
        except Exception as e:
            raise InvalidAssertionError(f'assertion "{ref}" is not defined in resolver') from e
        if found is None or not callable(found):
            raise InvalidAssertionError(f'assertion "{ref}" is not defined in resolver')
        logger.debug("aclx: resolved assertion %r via resolver", ref)
        return found


__all__ = ["Assertion", "AggregateMode", "AssertionAggregate", "AssertionRef"]
