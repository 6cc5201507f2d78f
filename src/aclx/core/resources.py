from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import (
    DuplicateResourceError,
    InvalidArgumentError,
    UnknownParentError,
    UnknownResourceError,
)
from .model import Resource


def resource_id_of(resource: Any) -> str:
    """Return the canonical id for a resource given as a string or a resource-like object."""
    if isinstance(resource, str):
        return resource
    rid = getattr(resource, "resource_id", None)
    if rid is None:
        raise InvalidArgumentError(
            f"expected a resource id or an object with 'resource_id', got {type(resource).__name__}"
        )
    return str(rid)


@dataclass
class _ResourceNode:
    instance: Resource
    parent: Optional[str] = None
    children: Dict[str, None] = field(default_factory=dict)


class ResourceTree:
    """Resources with single-parent inheritance."""

    def __init__(self) -> None:
        self._nodes: Dict[str, _ResourceNode] = {}

    def __contains__(self, resource: Any) -> bool:
        return self.has(resource)

    def __len__(self) -> int:
        return len(self._nodes)

    def add(self, resource: Any, parent: Any = None) -> "ResourceTree":
        if isinstance(resource, str):
            resource = Resource(resource)
        elif not isinstance(resource, Resource):
            raise InvalidArgumentError(
                f"add() expects a resource id or a Resource, got {type(resource).__name__}"
            )
        rid = resource.resource_id
        if rid in self._nodes:
            raise DuplicateResourceError(rid)

        pid: Optional[str] = None
        if parent is not None:
            pid = resource_id_of(parent)
            if pid not in self._nodes:
                raise UnknownParentError("Resource", pid)
            self._nodes[pid].children[rid] = None

        self._nodes[rid] = _ResourceNode(instance=resource, parent=pid)
        return self

    def get(self, resource: Any) -> Resource:
        rid = resource_id_of(resource)
        node = self._nodes.get(rid)
        if node is None:
            raise UnknownResourceError(rid)
        return node.instance

    def has(self, resource: Any) -> bool:
        return resource_id_of(resource) in self._nodes

    def parent_of(self, resource: Any) -> Optional[str]:
        return self._node(resource).parent

    def get_children(self, resource: Any) -> List[str]:
        return list(self._node(resource).children)

    def get_descendants(self, resource: Any) -> List[str]:
        """All descendant ids, depth-first, parents before their own children."""
        out: List[str] = []
        stack = list(reversed(self.get_children(resource)))
        while stack:
            current = stack.pop()
            out.append(current)
            stack.extend(reversed(list(self._nodes[current].children)))
        return out

    def inherits(self, resource: Any, ancestor: Any, only_parent: bool = False) -> bool:
        rid = self.get(resource).resource_id
        aid = self.get(ancestor).resource_id

        parent = self._nodes[rid].parent
        if parent is None:
            return False
        if parent == aid:
            return True
        if only_parent:
            return False
        while parent is not None:
            if parent == aid:
                return True
            parent = self._nodes[parent].parent
        return False

    def remove(self, resource: Any) -> List[str]:
        """Remove *resource* and its subtree; return every removed id."""
        rid = self.get(resource).resource_id
        removed = [rid] + self.get_descendants(rid)

        parent = self._nodes[rid].parent
        if parent is not None:
            self._nodes[parent].children.pop(rid, None)
        for node_id in removed:
            del self._nodes[node_id]
        return removed

    def remove_all(self) -> List[str]:
        removed = list(self._nodes)
        self._nodes.clear()
        return removed

    def ids(self) -> List[str]:
        return list(self._nodes)

    def _node(self, resource: Any) -> _ResourceNode:
        return self._nodes[self.get(resource).resource_id]
