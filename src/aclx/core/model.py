from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .assertions import Assertion


@dataclass(frozen=True)
class Role:
    """A principal category. Identity is the string id."""

    role_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "role_id", str(self.role_id))

    def __str__(self) -> str:
        return self.role_id


@dataclass(frozen=True)
class Resource:
    """A protected object category. Identity is the string id."""

    resource_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "resource_id", str(self.resource_id))

    def __str__(self) -> str:
        return self.resource_id


class RuleType(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    def inverted(self) -> "RuleType":
        return RuleType.DENY if self is RuleType.ALLOW else RuleType.ALLOW


class Operation(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class Rule:
    type: RuleType
    assertion: Optional["Assertion"] = None


def _coerce_enum(enum_cls: Any, value: Any) -> Any:
    """Accept an enum member, its value or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_cls:
            if key in (member.value, member.name.lower()):
                return member
    raise ValueError(value)
