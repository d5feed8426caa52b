# helpdesk/notification/services.py
"""Recipient resolution for ticket events. Failures here never fail the triggering request."""

from functools import wraps

from sqlalchemy.orm import Session

from helpdesk.core.logging_config import logger
from helpdesk.notification import messages
from helpdesk.notification.dispatcher import Notifier
from helpdesk.user.models import STAFF_ROLES, User


def fire_and_forget(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Notification error in {func.__name__}: {e}", exc_info=True)

    return wrapper


def _reachable_staff(db: Session, exclude_id: int | None = None) -> list[User]:
    query = db.query(User).filter(
        User.role.in_(list(STAFF_ROLES)),
        User.is_active.is_(True),
        User.email_verified.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.all()


def _verified(user: User | None) -> bool:
    return user is not None and user.is_active and user.email_verified


@fire_and_forget
def notify_new_ticket(db: Session, notifier: Notifier, ticket) -> None:
    for staff in _reachable_staff(db):
        notifier.send(messages.new_ticket(staff.email, ticket))


@fire_and_forget
def notify_new_comment(db: Session, notifier: Notifier, ticket, comment) -> None:
    author = comment.author
    author_name = author.username if author else "unknown"
    customer = ticket.customer
    if _verified(customer) and customer.id != comment.user_id:
        notifier.send(messages.new_comment(customer.email, ticket, comment, author_name))

    assignee = ticket.assignee
    if (
        _verified(assignee)
        and assignee.id != comment.user_id
        and assignee.id != ticket.customer_id
    ):
        notifier.send(messages.new_comment(assignee.email, ticket, comment, author_name))


@fire_and_forget
def notify_internal_comment(db: Session, notifier: Notifier, ticket, comment) -> None:
    author = comment.author
    author_name = author.username if author else "unknown"
    author_role = author.role.value if author else "unknown"
    for staff in _reachable_staff(db, exclude_id=comment.user_id):
        notifier.send(messages.internal_comment(staff.email, ticket, comment, author_name, author_role))


@fire_and_forget
def notify_status_change(db: Session, notifier: Notifier, ticket, old_status, new_status) -> None:
    if _verified(ticket.customer):
        notifier.send(messages.status_change(ticket.customer.email, ticket, old_status, new_status))
    assignee = ticket.assignee
    if _verified(assignee) and assignee.id != ticket.customer_id:
        notifier.send(messages.status_change(assignee.email, ticket, old_status, new_status))


@fire_and_forget
def notify_assignment(db: Session, notifier: Notifier, ticket) -> None:
    if _verified(ticket.assignee):
        notifier.send(messages.assignment(ticket.assignee.email, ticket))
