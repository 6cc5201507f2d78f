from .acl import Acl
from .assertions import AggregateMode, Assertion, AssertionAggregate
from .model import Operation, Resource, Role, Rule, RuleType
from .resources import ResourceTree
from .roles import RoleRegistry
from .rules import ALL_RESOURCES, ALL_ROLES, ROOT_RULE, RuleSet, RuleStore

__all__ = [
    "Acl",
    "AggregateMode",
    "Assertion",
    "AssertionAggregate",
    "Operation",
    "Resource",
    "Role",
    "Rule",
    "RuleType",
    "ResourceTree",
    "RoleRegistry",
    "ALL_RESOURCES",
    "ALL_ROLES",
    "ROOT_RULE",
    "RuleSet",
    "RuleStore",
]
