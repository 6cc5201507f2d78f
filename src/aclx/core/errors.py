from __future__ import annotations


class AclError(Exception):
    """Base class for every error raised by aclx."""


class InvalidArgumentError(AclError, ValueError):
    pass


class UnknownRoleError(InvalidArgumentError, LookupError):
    def __init__(self, role_id: str) -> None:
        super().__init__(f"Role '{role_id}' not found")
        self.role_id = role_id


class UnknownResourceError(InvalidArgumentError, LookupError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource '{resource_id}' not found")
        self.resource_id = resource_id


class UnknownParentError(InvalidArgumentError):
    """Raised when a role/resource is registered under a parent that does not exist."""

    def __init__(self, kind: str, parent_id: str) -> None:
        super().__init__(f'Parent {kind} id "{parent_id}" does not exist')
        self.parent_id = parent_id


class DuplicateRoleError(InvalidArgumentError):
    def __init__(self, role_id: str) -> None:
        super().__init__(f'Role id "{role_id}" already exists in the registry')
        self.role_id = role_id


class DuplicateResourceError(InvalidArgumentError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource id '{resource_id}' already exists in the ACL")
        self.resource_id = resource_id


class InvalidRuleTypeError(InvalidArgumentError):
    pass


class InvalidOperationError(InvalidArgumentError):
    pass


class EmptyAggregateError(AclError, RuntimeError):
    pass


class UnresolvedAssertionError(AclError, RuntimeError):
    """A named assertion inside an aggregate could not be turned into a callable."""


class NoResolverError(UnresolvedAssertionError):
    pass


class InvalidAssertionError(UnresolvedAssertionError):
    pass


__all__ = [
    "AclError",
    "InvalidArgumentError",
    "UnknownRoleError",
    "UnknownResourceError",
    "UnknownParentError",
    "DuplicateRoleError",
    "DuplicateResourceError",
    "InvalidRuleTypeError",
    "InvalidOperationError",
    "EmptyAggregateError",
    "UnresolvedAssertionError",
    "NoResolverError",
    "InvalidAssertionError",
]
