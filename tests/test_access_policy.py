# tests/test_access_policy.py
import pytest

from helpdesk.access.policy import AccessControl, Action, Actor, Resource
from helpdesk.core.errors import Forbidden, NotFound
from helpdesk.user.models import Role

access = AccessControl()

ADMIN = Actor(id=1, role=Role.ADMIN)
AGENT = Actor(id=2, role=Role.AGENT)
CUSTOMER = Actor(id=3, role=Role.CUSTOMER)
OWN_TICKET = Resource(owner_id=3)
FOREIGN_TICKET = Resource(owner_id=99)


def test_staff_read_any_ticket():
    assert access.decide(ADMIN, Action.TICKET_READ, FOREIGN_TICKET)
    assert access.decide(AGENT, Action.TICKET_READ, FOREIGN_TICKET)


def test_customer_reads_only_own_ticket():
    assert access.decide(CUSTOMER, Action.TICKET_READ, OWN_TICKET)
    assert not access.decide(CUSTOMER, Action.TICKET_READ, FOREIGN_TICKET)


def test_ownerless_ticket_is_not_owned_by_anyone():
    assert not access.decide(CUSTOMER, Action.TICKET_READ, Resource(owner_id=None))


def test_customer_may_edit_text_fields_of_own_ticket():
    access.authorize_ticket_update(CUSTOMER, OWN_TICKET, ["subject", "description"])


def test_customer_staff_field_denies_whole_update():
    with pytest.raises(Forbidden) as exc:
        access.authorize_ticket_update(CUSTOMER, OWN_TICKET, ["subject", "status"])
    assert exc.value.detail == "Insufficient permissions to update these fields"


def test_customer_cannot_update_foreign_ticket():
    with pytest.raises(Forbidden) as exc:
        access.authorize_ticket_update(CUSTOMER, FOREIGN_TICKET, ["subject"])
    assert exc.value.detail == "Insufficient permissions"


def test_agent_updates_staff_fields():
    access.authorize_ticket_update(AGENT, FOREIGN_TICKET, ["status", "priority", "assigned_to", "group_id"])


def test_only_admin_deletes_tickets():
    assert access.decide(ADMIN, Action.TICKET_DELETE)
    assert not access.decide(AGENT, Action.TICKET_DELETE)
    assert not access.decide(CUSTOMER, Action.TICKET_DELETE)


def test_comment_edit_is_author_only_even_for_admin():
    assert not access.decide(ADMIN, Action.COMMENT_EDIT, Resource(author_id=2))
    assert access.decide(ADMIN, Action.COMMENT_EDIT, Resource(author_id=1))
    assert access.decide(CUSTOMER, Action.COMMENT_EDIT, Resource(author_id=3))


def test_comment_delete_author_or_admin():
    assert access.decide(ADMIN, Action.COMMENT_DELETE, Resource(author_id=2))
    assert not access.decide(AGENT, Action.COMMENT_DELETE, Resource(author_id=3))
    assert access.decide(AGENT, Action.COMMENT_DELETE, Resource(author_id=2))


def test_internal_comments_are_staff_only():
    assert access.decide(AGENT, Action.COMMENT_READ_INTERNAL)
    assert not access.decide(CUSTOMER, Action.COMMENT_READ_INTERNAL)


def test_internal_flag_is_downgraded_for_customers():
    assert access.effective_internal(AGENT, True) is True
    assert access.effective_internal(AGENT, False) is False
    assert access.effective_internal(CUSTOMER, True) is False


def test_user_list_rules():
    assert access.decide(ADMIN, Action.USER_LIST)
    assert not access.decide(AGENT, Action.USER_LIST)
    assert access.decide(CUSTOMER, Action.USER_LIST_BY_ROLE)


def test_self_service_profile_but_not_privileges():
    access.authorize_user_update(CUSTOMER, Resource(user_id=3), ["first_name", "email"])
    with pytest.raises(Forbidden):
        access.authorize_user_update(CUSTOMER, Resource(user_id=3), ["role"])
    with pytest.raises(Forbidden):
        access.authorize_user_update(AGENT, Resource(user_id=3), ["first_name"])
    access.authorize_user_update(ADMIN, Resource(user_id=3), ["role", "is_active"])


def test_group_and_setting_mutation_is_admin_only():
    for action in (Action.GROUP_MUTATE, Action.SETTING_MUTATE, Action.SETTING_READ):
        assert access.decide(ADMIN, action)
        assert not access.decide(AGENT, action)
        assert not access.decide(CUSTOMER, action)
    assert access.decide(CUSTOMER, Action.GROUP_READ)


def test_missing_resource_is_hidden_unless_access_is_unconditional():
    assert isinstance(access.missing(AGENT, Action.TICKET_READ, "Ticket not found"), NotFound)
    assert isinstance(access.missing(CUSTOMER, Action.TICKET_READ, "Ticket not found"), Forbidden)
    assert isinstance(access.missing(ADMIN, Action.COMMENT_EDIT, "Comment not found"), Forbidden)


def test_unknown_action_is_denied():
    restricted = AccessControl(policy={Action.TICKET_READ: {Role.ADMIN: access.rule(ADMIN, Action.TICKET_READ)}})
    assert restricted.decide(ADMIN, Action.TICKET_READ)
    assert not restricted.decide(AGENT, Action.TICKET_READ)
    assert not restricted.decide(ADMIN, Action.TICKET_DELETE)
