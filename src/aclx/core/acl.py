from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..logging.context import get_current_trace_id
from .assertions import AggregateMode, Assertion, AssertionAggregate, AssertionRef
from .errors import InvalidArgumentError, InvalidOperationError, InvalidRuleTypeError
from .model import Operation, Resource, Role, Rule, RuleType, _coerce_enum
from .ports import AssertionResolver, DecisionLogSink, MetricsObserve, MetricsSink
from .resources import ResourceTree
from .roles import RoleRegistry
from .rules import (
    ALL_RESOURCES,
    ALL_ROLES,
    ROOT_RULE,
    ResourceScope,
    RoleScope,
    RuleSet,
    RuleStore,
)

logger = logging.getLogger("aclx.core.acl")


@dataclass(frozen=True)
class _Query:
    """Objects handed to assertions during one ``is_allowed`` call."""

    role: Any
    resource: Any
    privilege: Optional[str]


class Acl:
    """Access control list with role and resource inheritance.

    Whitelist by default: a fresh instance denies everything. Rules are
    attached to (resource, role, privilege) coordinates where each part may
    be the wildcard; ``is_allowed`` returns the most specific applicable
    rule found by walking the resource ancestry and, at each level, the
    role inheritance graph.

    Every public method runs under one re-entrant lock, so assertions may
    call back into the engine.
    """

    def __init__(
        self,
        *,
        logger_sink: Optional[DecisionLogSink] = None,
        metrics: Optional[MetricsSink] = None,
        assertion_resolver: Optional[AssertionResolver] = None,
    ) -> None:
        self.logger_sink = logger_sink
        self.metrics = metrics
        self.assertion_resolver = assertion_resolver
        self._roles = RoleRegistry()
        self._resources = ResourceTree()
        self._rules = RuleStore()
        self._lock = threading.RLock()

    # --------------------------------------------------------------------- #
    # Roles
    # --------------------------------------------------------------------- #

    def add_role(self, role: Union[str, Role], parents: Any = None) -> "Acl":
        with self._lock:
            self._roles.add(role, parents)
        logger.debug("aclx: role %s added (parents=%r)", role, parents)
        return self

    def get_role(self, role: Any) -> Role:
        with self._lock:
            return self._roles.get(role)

    def has_role(self, role: Any) -> bool:
        with self._lock:
            return self._roles.has(role)

    def get_role_parents(self, role: Any) -> List[str]:
        with self._lock:
            return self._roles.get_parents(role)

    def inherits_role(self, role: Any, inherit: Any, only_parents: bool = False) -> bool:
        with self._lock:
            return self._roles.inherits(role, inherit, only_parents)

    def remove_role(self, role: Any) -> "Acl":
        with self._lock:
            rid = self._roles.get(role).role_id
            self._roles.remove(rid)
            dropped = self._rules.drop_role(rid)
        logger.debug("aclx: role %s removed with %d rule set(s)", rid, dropped)
        return self

    def remove_role_all(self) -> "Acl":
        with self._lock:
            self._roles.remove_all()
            self._rules.drop_all_roles()
        return self

    def get_roles(self) -> List[str]:
        with self._lock:
            return self._roles.ids()

    # --------------------------------------------------------------------- #
    # Resources
    # --------------------------------------------------------------------- #

    def add_resource(self, resource: Union[str, Resource], parent: Any = None) -> "Acl":
        with self._lock:
            self._resources.add(resource, parent)
        logger.debug("aclx: resource %s added (parent=%r)", resource, parent)
        return self

    def get_resource(self, resource: Any) -> Resource:
        with self._lock:
            return self._resources.get(resource)

    def has_resource(self, resource: Any) -> bool:
        with self._lock:
            return self._resources.has(resource)

    def inherits_resource(self, resource: Any, inherit: Any, only_parent: bool = False) -> bool:
        with self._lock:
            return self._resources.inherits(resource, inherit, only_parent)

    def get_resource_descendants(self, resource: Any) -> List[str]:
        with self._lock:
            return self._resources.get_descendants(resource)

    def remove_resource(self, resource: Any) -> "Acl":
        with self._lock:
            removed = self._resources.remove(resource)
            self._rules.drop_resources(removed)
        logger.debug("aclx: resources removed: %s", ", ".join(removed))
        return self

    def remove_resource_all(self) -> "Acl":
        with self._lock:
            removed = self._resources.remove_all()
            self._rules.drop_resources(removed)
        return self

    def get_resources(self) -> List[str]:
        with self._lock:
            return self._resources.ids()

    # --------------------------------------------------------------------- #
    # Rules
    # --------------------------------------------------------------------- #

    def allow(
        self,
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None,
    ) -> "Acl":
        return self.set_rule(Operation.ADD, RuleType.ALLOW, roles, resources, privileges, assertion)

    def deny(
        self,
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None,
    ) -> "Acl":
        return self.set_rule(Operation.ADD, RuleType.DENY, roles, resources, privileges, assertion)

    def remove_allow(self, roles: Any = None, resources: Any = None, privileges: Any = None) -> "Acl":
        return self.set_rule(Operation.REMOVE, RuleType.ALLOW, roles, resources, privileges)

    def remove_deny(self, roles: Any = None, resources: Any = None, privileges: Any = None) -> "Acl":
        return self.set_rule(Operation.REMOVE, RuleType.DENY, roles, resources, privileges)

    def set_rule(
        self,
        operation: Union[Operation, str],
        rule_type: Union[RuleType, str],
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None,
    ) -> "Acl":
        """Add or remove rules on every (resource, role) pair of the normalized arguments.

        All identifiers are validated before the first write, so a failing
        call leaves the rules untouched.
        """
        try:
            op = _coerce_enum(Operation, operation)
        except ValueError:
            raise InvalidOperationError(
                f"Unsupported operation {operation!r}; must be either 'add' or 'remove'"
            ) from None
        try:
            kind = _coerce_enum(RuleType, rule_type)
        except ValueError:
            raise InvalidRuleTypeError(
                f"Unsupported rule type {rule_type!r}; must be either 'allow' or 'deny'"
            ) from None
        if assertion is not None and not callable(assertion):
            raise InvalidArgumentError("assertion must be callable")

        with self._lock:
            role_scopes = self._prepare_roles(roles)
            resource_scopes = self._prepare_resources(resources)
            privilege_list = _prepare_privileges(privileges)

            if op is Operation.ADD:
                rule = Rule(type=kind, assertion=assertion)
                for resource in resource_scopes:
                    for role in role_scopes:
                        self._rules.add(resource, role, privilege_list, rule)
            else:
                for resource in resource_scopes:
                    for role in role_scopes:
                        self._rules.remove(resource, role, privilege_list, kind)

        logger.debug(
            "aclx: %s %s roles=%s resources=%s privileges=%s",
            op.value,
            kind.value,
            role_scopes,
            resource_scopes,
            privilege_list or "*",
        )
        return self

    def aggregate(
        self,
        *assertions: AssertionRef,
        mode: Union[AggregateMode, str] = AggregateMode.ALL,
    ) -> AssertionAggregate:
        """Build an aggregate wired to this engine's assertion resolver."""
        return AssertionAggregate(assertions, mode=mode, resolver=self.assertion_resolver)

    def _prepare_roles(self, roles: Any) -> List[RoleScope]:
        out: List[RoleScope] = []
        for role in _as_items(roles, "role_id", Role):
            scope = ALL_ROLES if role is None else self._roles.get(role).role_id
            if scope not in out:
                out.append(scope)
        return out

    def _prepare_resources(self, resources: Any) -> List[ResourceScope]:
        if resources is None and len(self._resources):
            # null also covers every resource registered so far
            return [ALL_RESOURCES] + self._resources.ids()

        out: Dict[ResourceScope, None] = {}
        for resource in _as_items(resources, "resource_id", Resource):
            if resource is None:
                out[ALL_RESOURCES] = None
                continue
            rid = self._resources.get(resource).resource_id
            out[rid] = None
            for child in self._resources.get_descendants(rid):
                out[child] = None
        return list(out)

    # --------------------------------------------------------------------- #
    # Decisions
    # --------------------------------------------------------------------- #

    def is_allowed(self, role: Any = None, resource: Any = None, privilege: Optional[str] = None) -> bool:
        """Decide whether *role* may exercise *privilege* on *resource*.

        ``None`` for any argument means "all": no particular role, the
        resource root, or every privilege at once.
        """
        t0 = time.perf_counter()
        with self._lock:
            role_id: Optional[str] = None
            resource_id: Optional[str] = None
            assert_role: Any = None
            assert_resource: Any = None

            if role is not None:
                registered = self._roles.get(role)
                role_id = registered.role_id
                assert_role = registered if isinstance(role, str) else role
            if resource is not None:
                registered_res = self._resources.get(resource)
                resource_id = registered_res.resource_id
                assert_resource = registered_res if isinstance(resource, str) else resource

            if privilege is not None:
                privilege = str(privilege)

            query = _Query(role=assert_role, resource=assert_resource, privilege=privilege)
            if privilege is None:
                allowed = self._resolve_all_privileges(query, role_id, resource_id)
            else:
                allowed = self._resolve_one_privilege(query, role_id, resource_id, privilege)

        self._emit(allowed, role_id, resource_id, privilege, time.perf_counter() - t0)
        return allowed

    def _lineage(self, resource_id: Optional[str]):
        """Yield the resource scope and its ancestors, ending with the wildcard."""
        current = resource_id
        while current is not None:
            yield current
            current = self._resources.parent_of(current)
        yield ALL_RESOURCES

    def _resolve_all_privileges(
        self, query: _Query, role_id: Optional[str], resource_id: Optional[str]
    ) -> bool:
        for scope in self._lineage(resource_id):
            if role_id is not None:
                result = self._role_dfs(
                    role_id, lambda rid: self._visit_all_privileges(query, scope, rid)
                )
                if result is not None:
                    return result

            result = self._visit_all_privileges(query, scope, ALL_ROLES)
            if result is not None:
                return result
        # unreachable while the root rule exists
        return False  # pragma: no cover

    def _resolve_one_privilege(
        self, query: _Query, role_id: Optional[str], resource_id: Optional[str], privilege: str
    ) -> bool:
        for scope in self._lineage(resource_id):
            if role_id is not None:
                result = self._role_dfs(
                    role_id, lambda rid: self._visit_one_privilege(query, scope, rid, privilege)
                )
                if result is not None:
                    return result

            rule_type = self._rule_type(query, scope, ALL_ROLES, privilege)
            if rule_type is not None:
                return rule_type is RuleType.ALLOW
            rule_type = self._rule_type(query, scope, ALL_ROLES, None)
            if rule_type is not None:
                # a wildcard deny settles the query only at the root
                if rule_type is RuleType.ALLOW or scope is ALL_RESOURCES:
                    return rule_type is RuleType.ALLOW
        return False  # pragma: no cover

    def _role_dfs(self, role_id: str, visit: Callable[[str], Optional[bool]]) -> Optional[bool]:
        """Depth-first over the role graph; the most recently added parent goes first."""
        stack = [role_id]
        visited = set()
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            result = visit(current)
            if result is not None:
                return result
            visited.add(current)
            stack.extend(self._roles.get_parents(current))
        return None

    def _visit_all_privileges(
        self, query: _Query, resource: ResourceScope, role: RoleScope
    ) -> Optional[bool]:
        rules: Optional[RuleSet] = self._rules.get(resource, role)
        if rules is None:
            return None
        # denying any single privilege denies "all privileges"
        for privilege in list(rules.by_privilege):
            if self._rule_type(query, resource, role, privilege) is RuleType.DENY:
                return False
        rule_type = self._rule_type(query, resource, role, None)
        if rule_type is not None:
            return rule_type is RuleType.ALLOW
        return None

    def _visit_one_privilege(
        self, query: _Query, resource: ResourceScope, role: RoleScope, privilege: str
    ) -> Optional[bool]:
        rule_type = self._rule_type(query, resource, role, privilege)
        if rule_type is None:
            rule_type = self._rule_type(query, resource, role, None)
        if rule_type is None:
            return None
        return rule_type is RuleType.ALLOW

    def _rule_type(
        self,
        query: _Query,
        resource: ResourceScope,
        role: RoleScope,
        privilege: Optional[str],
    ) -> Optional[RuleType]:
        """Effective type of the rule at a coordinate, or None when it does not apply."""
        rule = self._rules.lookup(resource, role, privilege)
        if rule is None:
            return None
        if rule.assertion is None:
            return rule.type
        if rule.assertion(self, query.role, query.resource, query.privilege):
            return rule.type
        if privilege is None and (resource, role) == ROOT_RULE:
            # the default rule must answer; a failed assertion flips it
            return rule.type.inverted()
        return None

    # --------------------------------------------------------------------- #
    # Observability
    # --------------------------------------------------------------------- #

    def _emit(
        self,
        allowed: bool,
        role_id: Optional[str],
        resource_id: Optional[str],
        privilege: Optional[str],
        elapsed: float,
    ) -> None:
        decision = "allow" if allowed else "deny"
        if self.logger_sink is not None:
            payload = {
                "decision": decision,
                "allowed": allowed,
                "role": role_id,
                "resource": resource_id,
                "privilege": privilege,
                "trace_id": get_current_trace_id(),
                "duration_ms": round(elapsed * 1000.0, 3),
            }
            try:
                self.logger_sink.log(payload)
            except Exception:
                logger.exception("aclx: decision logger failed")

        if self.metrics is not None:
            labels = {"decision": decision}
            try:
                self.metrics.inc("aclx_decisions_total", labels)
            except Exception:
                logger.exception("aclx: metrics inc failed")
            if isinstance(self.metrics, MetricsObserve):
                try:
                    self.metrics.observe("aclx_decision_seconds", elapsed, labels)
                except Exception:
                    logger.exception("aclx: metrics observe failed")


def _as_items(value: Any, id_attr: str, value_type: type) -> List[Any]:
    """Normalize a single id/object or a collection of them; empty means wildcard."""
    if value is None:
        return [None]
    if isinstance(value, (str, value_type)) or hasattr(value, id_attr):
        return [value]
    if isinstance(value, Iterable):
        items = list(value)
        return items or [None]
    raise InvalidArgumentError(f"unsupported argument: {value!r}")


def _prepare_privileges(privileges: Any) -> List[str]:
    if privileges is None:
        return []
    if isinstance(privileges, str) or not isinstance(privileges, Iterable):
        return [str(privileges)]
    out: List[str] = []
    for privilege in privileges:
        name = str(privilege)
        if name not in out:
            out.append(name)
    return out


__all__ = ["Acl"]
