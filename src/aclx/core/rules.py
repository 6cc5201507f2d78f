from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

from .model import Rule, RuleType


class Wildcard(Enum):
    ALL_ROLES = "all-roles"
    ALL_RESOURCES = "all-resources"

    def __repr__(self) -> str:
        return f"<{self.name}>"


ALL_ROLES = Wildcard.ALL_ROLES
ALL_RESOURCES = Wildcard.ALL_RESOURCES

RoleScope = Union[str, Literal[Wildcard.ALL_ROLES]]
ResourceScope = Union[str, Literal[Wildcard.ALL_RESOURCES]]
ScopeKey = Tuple[ResourceScope, RoleScope]

# Coordinate of the global default rule (its all-privileges slot).
ROOT_RULE: ScopeKey = (ALL_RESOURCES, ALL_ROLES)

DEFAULT_RULE = Rule(type=RuleType.DENY)


@dataclass
class RuleSet:
    """Rules at one (resource scope, role scope) coordinate."""

    all_privileges: Optional[Rule] = None
    by_privilege: Dict[str, Rule] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return self.all_privileges is None and not self.by_privilege

    def get(self, privilege: Optional[str]) -> Optional[Rule]:
        if privilege is None:
            return self.all_privileges
        return self.by_privilege.get(privilege)


class RuleStore:
    """Rule slots keyed by (resource scope, role scope).

    The root coordinate always holds an all-privileges rule; it starts as
    DENY without assertion and is reset to that rather than deleted.
    """

    def __init__(self) -> None:
        self._sets: Dict[ScopeKey, RuleSet] = {}
        self.reset()

    def reset(self) -> None:
        self._sets = {ROOT_RULE: RuleSet(all_privileges=DEFAULT_RULE)}

    def __len__(self) -> int:
        return len(self._sets)

    def keys(self) -> List[ScopeKey]:
        return list(self._sets)

    def get(self, resource: ResourceScope, role: RoleScope) -> Optional[RuleSet]:
        return self._sets.get((resource, role))

    def get_or_create(self, resource: ResourceScope, role: RoleScope) -> RuleSet:
        key = (resource, role)
        rules = self._sets.get(key)
        if rules is None:
            rules = self._sets[key] = RuleSet()
        return rules

    def lookup(
        self, resource: ResourceScope, role: RoleScope, privilege: Optional[str]
    ) -> Optional[Rule]:
        rules = self._sets.get((resource, role))
        return None if rules is None else rules.get(privilege)

    # --- mutation ------------------------------------------------------------

    def add(
        self,
        resource: ResourceScope,
        role: RoleScope,
        privileges: Sequence[str],
        rule: Rule,
    ) -> None:
        rules = self.get_or_create(resource, role)
        if not privileges:
            rules.all_privileges = rule
            return
        for privilege in privileges:
            rules.by_privilege[privilege] = rule

    def remove(
        self,
        resource: ResourceScope,
        role: RoleScope,
        privileges: Sequence[str],
        rule_type: RuleType,
    ) -> None:
        """Remove rules of *rule_type* only; rules of the other type stay."""
        key = (resource, role)
        rules = self._sets.get(key)
        if rules is None:
            return

        if not privileges:
            current = rules.all_privileges
            if current is None or current.type is not rule_type:
                return
            if key == ROOT_RULE:
                self._sets[key] = RuleSet(all_privileges=DEFAULT_RULE)
                return
            rules.all_privileges = None
        else:
            for privilege in privileges:
                current = rules.by_privilege.get(privilege)
                if current is not None and current.type is rule_type:
                    del rules.by_privilege[privilege]

        self._prune(key)

    def drop_role(self, role_id: str) -> int:
        return self._drop(lambda key: key[1] == role_id)

    def drop_all_roles(self) -> int:
        return self._drop(lambda key: key[1] is not ALL_ROLES)

    def drop_resources(self, resource_ids: Iterable[str]) -> int:
        doomed = set(resource_ids)
        return self._drop(lambda key: key[0] in doomed)

    # --- helpers -------------------------------------------------------------

    def _drop(self, predicate) -> int:
        keys = [k for k in self._sets if k != ROOT_RULE and predicate(k)]
        for key in keys:
            del self._sets[key]
        return len(keys)

    def _prune(self, key: ScopeKey) -> None:
        if key != ROOT_RULE and self._sets[key].is_empty():
            del self._sets[key]


__all__ = [
    "ALL_RESOURCES",
    "ALL_ROLES",
    "DEFAULT_RULE",
    "ROOT_RULE",
    "ResourceScope",
    "RoleScope",
    "RuleSet",
    "RuleStore",
    "ScopeKey",
    "Wildcard",
]
