# helpdesk/ticket/services.py
from dataclasses import dataclass

from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor, Resource
from helpdesk.attachment.models import Attachment
from helpdesk.attachment.storage import AttachmentStore, StoredFile
from helpdesk.comment.models import Comment
from helpdesk.core.errors import Conflict, NotFound, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.group.models import Group
from helpdesk.notification import services as notify
from helpdesk.notification.dispatcher import Notifier
from helpdesk.setting import services as setting_service
from helpdesk.ticket.models import Ticket, TicketPriority, TicketStatus
from helpdesk.ticket.schemas import TicketUpdate
from helpdesk.user.models import STAFF_ROLES, User


@dataclass
class TicketFilters:
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: int | None = None
    customer_id: int | None = None
    group_id: int | None = None


def ticket_resource(ticket: Ticket) -> Resource:
    return Resource(owner_id=ticket.customer_id)


def list_tickets(
    db: Session, access: AccessControl, actor: Actor, filters: TicketFilters
) -> list[tuple[Ticket, int]]:
    """
    Tickets visible to the actor, newest first, with their comment count.

    Actors without unrestricted read access only get their own tickets, and
    count only the comments they are allowed to read.
    """
    counted = select(Comment.ticket_id, func.count(Comment.id).label("comment_count"))
    if not access.decide(actor, Action.COMMENT_READ_INTERNAL):
        counted = counted.where(Comment.is_internal.is_(False))
    counts = counted.group_by(Comment.ticket_id).subquery()

    query = db.query(Ticket, func.coalesce(counts.c.comment_count, 0)).outerjoin(
        counts, counts.c.ticket_id == Ticket.id
    )
    if not access.is_unrestricted(actor, Action.TICKET_READ):
        query = query.filter(Ticket.customer_id == actor.id)

    if filters.status is not None:
        query = query.filter(Ticket.status == filters.status)
    if filters.priority is not None:
        query = query.filter(Ticket.priority == filters.priority)
    if filters.assigned_to is not None:
        query = query.filter(Ticket.assigned_to == filters.assigned_to)
    if filters.customer_id is not None:
        query = query.filter(Ticket.customer_id == filters.customer_id)
    if filters.group_id is not None:
        query = query.filter(Ticket.group_id == filters.group_id)

    rows = query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()
    return [(ticket, int(count)) for ticket, count in rows]


def load_ticket(db: Session, access: AccessControl, actor: Actor, ticket_id: int, action: Action) -> Ticket:
    """Fetches a ticket and checks `action` against it."""
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        raise access.missing(actor, action, "Ticket not found")
    access.authorize(actor, action, ticket_resource(ticket))
    return ticket


def get_ticket(db: Session, access: AccessControl, actor: Actor, ticket_id: int) -> Ticket:
    return load_ticket(db, access, actor, ticket_id, Action.TICKET_READ)


def _next_ticket_number(db: Session) -> int:
    return (db.query(func.max(Ticket.ticket_number)).scalar() or 0) + 1


def _active_staff(db: Session, user_id: int) -> User | None:
    user = db.get(User, user_id)
    if user is None or not user.is_active or user.role not in STAFF_ROLES:
        return None
    return user


def _auto_assignee(db: Session) -> int | None:
    raw = setting_service.get_value(db, "auto_assign_agent")
    if not raw:
        return None
    try:
        user_id = int(raw)
    except ValueError:
        logger.warning(f"Ignoring auto_assign_agent setting, not a user id: {raw!r}")
        return None
    if _active_staff(db, user_id) is None:
        logger.warning(f"Ignoring auto_assign_agent setting, user {user_id} is not active staff")
        return None
    return user_id


def attach_files(db: Session, stored: list[StoredFile], ticket_id: int, user_id: int, comment_id: int | None = None) -> None:
    for item in stored:
        db.add(
            Attachment(
                ticket_id=ticket_id,
                comment_id=comment_id,
                user_id=user_id,
                filename=item.filename,
                original_filename=item.original_filename,
                mime_type=item.mime_type,
                file_size=item.file_size,
                file_path=item.file_path,
            )
        )


def check_upload_count(uploads: list[UploadFile], limit: int) -> list[UploadFile]:
    uploads = [u for u in uploads or [] if u.filename]
    if len(uploads) > limit:
        raise ValidationFailed(f"Too many attachments (maximum {limit})")
    return uploads


def create_ticket(
    db: Session,
    store: AttachmentStore,
    notifier: Notifier,
    actor: Actor,
    subject: str,
    description: str,
    priority: TicketPriority,
    uploads: list[UploadFile],
    max_attachments: int,
) -> Ticket:
    if not subject.strip() or not description.strip():
        raise ValidationFailed("Subject and description are required")
    uploads = check_upload_count(uploads, max_attachments)

    stored = store.save_all(uploads)
    try:
        ticket = Ticket(
            ticket_number=_next_ticket_number(db),
            subject=subject,
            description=description,
            status=TicketStatus.OPEN,
            priority=priority,
            customer_id=actor.id,
            assigned_to=_auto_assignee(db),
        )
        db.add(ticket)
        db.flush()
        attach_files(db, stored, ticket.id, actor.id)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        store.discard(stored)
        raise Conflict("Ticket number already taken, please retry") from e
    except Exception:
        db.rollback()
        store.discard(stored)
        raise

    db.refresh(ticket)
    logger.info(f"Ticket created: {ticket.ticket_number} by user {actor.id}")
    notify.notify_new_ticket(db, notifier, ticket)
    return ticket


def update_ticket(
    db: Session,
    access: AccessControl,
    notifier: Notifier,
    actor: Actor,
    ticket_id: int,
    payload: TicketUpdate,
) -> Ticket:
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        raise access.missing(actor, Action.TICKET_UPDATE, "Ticket not found")

    changes = payload.model_dump(exclude_unset=True)
    access.authorize_ticket_update(actor, ticket_resource(ticket), changes.keys())
    if not changes:
        raise ValidationFailed("No updates provided")

    for field in ("subject", "description", "status", "priority"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")

    if changes.get("assigned_to") is not None and _active_staff(db, changes["assigned_to"]) is None:
        raise ValidationFailed("Tickets can only be assigned to active agents or admins")
    if changes.get("group_id") is not None and db.get(Group, changes["group_id"]) is None:
        raise ValidationFailed("Group not found")

    old_status = ticket.status
    old_assignee = ticket.assigned_to

    status_changed = False
    if "status" in changes:
        status_changed = ticket.transition_to(changes.pop("status"))
    for field, value in changes.items():
        setattr(ticket, field, value)

    db.commit()
    db.refresh(ticket)
    logger.info(f"Ticket updated: {ticket.ticket_number} by user {actor.id}")

    if status_changed:
        notify.notify_status_change(db, notifier, ticket, old_status, ticket.status)
    if ticket.assigned_to is not None and ticket.assigned_to != old_assignee:
        notify.notify_assignment(db, notifier, ticket)
    return ticket


def delete_ticket(db: Session, store: AttachmentStore, ticket_id: int, actor: Actor) -> None:
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        raise NotFound("Ticket not found")
    number = ticket.ticket_number
    files = [StoredFile.of(a) for a in ticket.attachments]
    db.delete(ticket)
    db.commit()
    store.discard(files)
    logger.info(f"Ticket deleted: {number} by user {actor.id}")
