from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import DuplicateRoleError, InvalidArgumentError, UnknownParentError, UnknownRoleError
from .model import Role


def role_id_of(role: Any) -> str:
    """Return the canonical id for a role given as a string or a role-like object."""
    if isinstance(role, str):
        return role
    rid = getattr(role, "role_id", None)
    if rid is None:
        raise InvalidArgumentError(
            f"expected a role id or an object with 'role_id', got {type(role).__name__}"
        )
    return str(rid)


@dataclass
class _RoleEntry:
    instance: Role
    # dicts used as ordered sets; insertion order is DFS priority
    parents: Dict[str, None] = field(default_factory=dict)
    children: Dict[str, None] = field(default_factory=dict)


class RoleRegistry:
    """Roles with ordered multi-parent inheritance.

    Parents are kept in insertion order; the last added parent has the
    highest priority during rule resolution. Cycles are not detected, so
    callers must not build them.
    """

    def __init__(self) -> None:
        self._roles: Dict[str, _RoleEntry] = {}

    def __contains__(self, role: Any) -> bool:
        return self.has(role)

    def __len__(self) -> int:
        return len(self._roles)

    def add(self, role: Any, parents: Optional[Iterable[Any]] = None) -> "RoleRegistry":
        if isinstance(role, str):
            role = Role(role)
        elif not isinstance(role, Role):
            raise InvalidArgumentError(
                f"add() expects a role id or a Role, got {type(role).__name__}"
            )
        rid = role.role_id
        if rid in self._roles:
            raise DuplicateRoleError(rid)

        parent_ids: List[str] = []
        for parent in _as_parent_list(parents):
            pid = role_id_of(parent)
            if pid not in self._roles:
                raise UnknownParentError("Role", pid)
            if pid not in parent_ids:
                parent_ids.append(pid)

        entry = _RoleEntry(instance=role)
        for pid in parent_ids:
            entry.parents[pid] = None
            self._roles[pid].children[rid] = None
        self._roles[rid] = entry
        return self

    def get(self, role: Any) -> Role:
        rid = role_id_of(role)
        entry = self._roles.get(rid)
        if entry is None:
            raise UnknownRoleError(rid)
        return entry.instance

    def has(self, role: Any) -> bool:
        return role_id_of(role) in self._roles

    def get_parents(self, role: Any) -> List[str]:
        """Parent ids in insertion order (ascending priority)."""
        return list(self._entry(role).parents)

    def get_children(self, role: Any) -> List[str]:
        return list(self._entry(role).children)

    def inherits(self, role: Any, ancestor: Any, only_parents: bool = False) -> bool:
        rid = self.get(role).role_id
        aid = self.get(ancestor).role_id

        parents = self._roles[rid].parents
        if aid in parents or only_parents:
            return aid in parents

        seen = {rid}
        stack = list(parents)
        while stack:
            current = stack.pop()
            if current == aid:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._roles[current].parents)
        return False

    def remove(self, role: Any) -> "RoleRegistry":
        rid = self.get(role).role_id
        entry = self._roles.pop(rid)
        for child in entry.children:
            self._roles[child].parents.pop(rid, None)
        for parent in entry.parents:
            self._roles[parent].children.pop(rid, None)
        return self

    def remove_all(self) -> "RoleRegistry":
        self._roles.clear()
        return self

    def ids(self) -> List[str]:
        return list(self._roles)

    def _entry(self, role: Any) -> _RoleEntry:
        return self._roles[self.get(role).role_id]


def _as_parent_list(parents: Any) -> List[Any]:
    if parents is None:
        return []
    if isinstance(parents, (str, Role)) or hasattr(parents, "role_id"):
        return [parents]
    return list(parents)
