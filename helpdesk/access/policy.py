# helpdesk/access/policy.py
"""
Role and ownership based authorization.

Every decision goes through one table mapping (action, role) to a rule.
Rules other than ALLOW/DENY compare the actor with an ownership fact of the
resource (ticket customer, comment author, user record).
"""

import enum
from dataclasses import dataclass
from typing import Iterable

from helpdesk.core.errors import Forbidden, NotFound, ServiceError
from helpdesk.user.models import Role


class Action(enum.Enum):
    TICKET_READ = "ticket.read"
    TICKET_CREATE = "ticket.create"
    TICKET_UPDATE = "ticket.update"
    TICKET_UPDATE_STAFF_FIELDS = "ticket.update_staff_fields"
    TICKET_DELETE = "ticket.delete"

    COMMENT_READ = "comment.read"
    COMMENT_READ_INTERNAL = "comment.read_internal"
    COMMENT_CREATE = "comment.create"
    COMMENT_CREATE_INTERNAL = "comment.create_internal"
    COMMENT_EDIT = "comment.edit"
    COMMENT_DELETE = "comment.delete"

    GROUP_READ = "group.read"
    GROUP_MUTATE = "group.mutate"

    SETTING_READ = "setting.read"
    SETTING_MUTATE = "setting.mutate"

    USER_LIST = "user.list"
    USER_LIST_BY_ROLE = "user.list_by_role"
    USER_READ = "user.read"
    USER_CREATE = "user.create"
    USER_UPDATE_PROFILE = "user.update_profile"
    USER_UPDATE_PRIVILEGES = "user.update_privileges"
    USER_CHANGE_PASSWORD = "user.change_password"
    USER_ADMINISTER = "user.administer"


class Rule(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"
    OWNER = "owner"
    AUTHOR = "author"
    SELF = "self"


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=Role(user.role))

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.AGENT)


@dataclass(frozen=True)
class Resource:
    """Ownership facts about the resource being acted on."""

    owner_id: int | None = None
    author_id: int | None = None
    user_id: int | None = None


NO_RESOURCE = Resource()

_STAFF = {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.ALLOW, Role.CUSTOMER: Rule.DENY}
_STAFF_OR_OWNER = {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.ALLOW, Role.CUSTOMER: Rule.OWNER}
_ADMIN = {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.DENY, Role.CUSTOMER: Rule.DENY}
_ADMIN_OR_SELF = {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.SELF, Role.CUSTOMER: Rule.SELF}
_EVERYONE = {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.ALLOW, Role.CUSTOMER: Rule.ALLOW}

POLICY: dict[Action, dict[Role, Rule]] = {
    Action.TICKET_READ: _STAFF_OR_OWNER,
    Action.TICKET_CREATE: _EVERYONE,
    Action.TICKET_UPDATE: _STAFF_OR_OWNER,
    Action.TICKET_UPDATE_STAFF_FIELDS: _STAFF,
    Action.TICKET_DELETE: _ADMIN,
    Action.COMMENT_READ: _STAFF_OR_OWNER,
    Action.COMMENT_READ_INTERNAL: _STAFF,
    Action.COMMENT_CREATE: _STAFF_OR_OWNER,
    Action.COMMENT_CREATE_INTERNAL: _STAFF,
    Action.COMMENT_EDIT: {Role.ADMIN: Rule.AUTHOR, Role.AGENT: Rule.AUTHOR, Role.CUSTOMER: Rule.AUTHOR},
    Action.COMMENT_DELETE: {Role.ADMIN: Rule.ALLOW, Role.AGENT: Rule.AUTHOR, Role.CUSTOMER: Rule.AUTHOR},
    Action.GROUP_READ: _EVERYONE,
    Action.GROUP_MUTATE: _ADMIN,
    Action.SETTING_READ: _ADMIN,
    Action.SETTING_MUTATE: _ADMIN,
    Action.USER_LIST: _ADMIN,
    Action.USER_LIST_BY_ROLE: _EVERYONE,
    Action.USER_READ: _ADMIN_OR_SELF,
    Action.USER_CREATE: _ADMIN,
    Action.USER_UPDATE_PROFILE: _ADMIN_OR_SELF,
    Action.USER_UPDATE_PRIVILEGES: _ADMIN,
    Action.USER_CHANGE_PASSWORD: _ADMIN_OR_SELF,
    Action.USER_ADMINISTER: _ADMIN,
}

STAFF_ONLY_TICKET_FIELDS = frozenset({"status", "priority", "assigned_to", "group_id"})
PRIVILEGED_USER_FIELDS = frozenset({"role", "is_active"})


def _holds(rule: Rule, actor: Actor, resource: Resource) -> bool:
    if rule is Rule.ALLOW:
        return True
    if rule is Rule.OWNER:
        return resource.owner_id is not None and resource.owner_id == actor.id
    if rule is Rule.AUTHOR:
        return resource.author_id is not None and resource.author_id == actor.id
    if rule is Rule.SELF:
        return resource.user_id is not None and resource.user_id == actor.id
    return False


class AccessControl:
    """Pure decision function over a policy table; built once per application."""

    def __init__(self, policy: dict[Action, dict[Role, Rule]] | None = None):
        self._policy = policy or POLICY

    def rule(self, actor: Actor, action: Action) -> Rule:
        return self._policy.get(action, {}).get(actor.role, Rule.DENY)

    def decide(self, actor: Actor, action: Action, resource: Resource = NO_RESOURCE) -> bool:
        return _holds(self.rule(actor, action), actor, resource)

    def authorize(self, actor: Actor, action: Action, resource: Resource = NO_RESOURCE) -> None:
        if not self.decide(actor, action, resource):
            raise Forbidden()

    def is_unrestricted(self, actor: Actor, action: Action) -> bool:
        return self.rule(actor, action) is Rule.ALLOW

    def missing(self, actor: Actor, action: Action, detail: str) -> ServiceError:
        """
        Error for a resource that does not exist.

        Only actors whose access does not depend on ownership learn that the
        resource is absent; everyone else gets the same answer as for a
        resource they do not own.
        """
        if self.is_unrestricted(actor, action):
            return NotFound(detail)
        return Forbidden()

    def authorize_ticket_update(self, actor: Actor, resource: Resource, fields: Iterable[str]) -> None:
        """All-or-nothing: one staff-only field in the request denies the whole update."""
        self.authorize(actor, Action.TICKET_UPDATE, resource)
        if STAFF_ONLY_TICKET_FIELDS.intersection(fields):
            if not self.decide(actor, Action.TICKET_UPDATE_STAFF_FIELDS, resource):
                raise Forbidden("Insufficient permissions to update these fields")

    def authorize_user_update(self, actor: Actor, resource: Resource, fields: Iterable[str]) -> None:
        self.authorize(actor, Action.USER_UPDATE_PROFILE, resource)
        if PRIVILEGED_USER_FIELDS.intersection(fields):
            self.authorize(actor, Action.USER_UPDATE_PRIVILEGES, resource)

    def effective_internal(self, actor: Actor, requested: bool) -> bool:
        """Internal flag requested by a role that may not set it is dropped, not rejected."""
        return bool(requested) and self.decide(actor, Action.COMMENT_CREATE_INTERNAL)
