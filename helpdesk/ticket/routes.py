# helpdesk/ticket/routes.py
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.auth.schemas import MessageOut
from helpdesk.core.config import Settings
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_access, get_actor, get_app_settings, get_attachment_store, get_notifier, require
from helpdesk.notification.dispatcher import Notifier
from helpdesk.ticket import services as ticket_service
from helpdesk.ticket.models import TicketPriority, TicketStatus
from helpdesk.ticket.schemas import TicketDetail, TicketListItem, TicketOut, TicketUpdate

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/", response_model=list[TicketListItem])
def list_all(
    status: TicketStatus | None = Query(default=None),
    priority: TicketPriority | None = Query(default=None),
    assigned_to: int | None = Query(default=None),
    customer_id: int | None = Query(default=None),
    group_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    filters = ticket_service.TicketFilters(
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        customer_id=customer_id,
        group_id=group_id,
    )
    rows = ticket_service.list_tickets(db, access, actor, filters)
    return [
        TicketListItem.model_validate(ticket).model_copy(update={"comment_count": count})
        for ticket, count in rows
    ]


@router.get("/{ticket_id}", response_model=TicketDetail)
def get(
    ticket_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return TicketDetail.model_validate(ticket_service.get_ticket(db, access, actor, ticket_id))


@router.post("/", response_model=TicketDetail, status_code=201)
def create(
    subject: str = Form(...),
    description: str = Form(...),
    priority: TicketPriority = Form(TicketPriority.LOW),
    attachments: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.TICKET_CREATE)),
    store: AttachmentStore = Depends(get_attachment_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    ticket = ticket_service.create_ticket(
        db,
        store,
        notifier,
        actor,
        subject=subject,
        description=description,
        priority=priority,
        uploads=attachments,
        max_attachments=settings.MAX_ATTACHMENTS,
    )
    return TicketDetail.model_validate(ticket)


@router.put("/{ticket_id}", response_model=TicketOut)
def update(
    ticket_id: int,
    ticket: TicketUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
    notifier: Notifier = Depends(get_notifier),
):
    return ticket_service.update_ticket(db, access, notifier, actor, ticket_id, ticket)


@router.delete("/{ticket_id}", response_model=MessageOut)
def delete(
    ticket_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require(Action.TICKET_DELETE)),
    store: AttachmentStore = Depends(get_attachment_store),
):
    ticket_service.delete_ticket(db, store, ticket_id, actor)
    return MessageOut(message="Ticket deleted successfully")
