# helpdesk/comment/routes.py
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Actor
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.auth.schemas import MessageOut
from helpdesk.comment import services as comment_service
from helpdesk.comment.schemas import CommentOut, CommentUpdate
from helpdesk.core.config import Settings
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_access, get_actor, get_app_settings, get_attachment_store, get_notifier
from helpdesk.notification.dispatcher import Notifier

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/ticket/{ticket_id}", response_model=list[CommentOut])
def list_for_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return comment_service.list_for_ticket(db, access, actor, ticket_id)


@router.post("/", response_model=CommentOut, status_code=201)
def create(
    ticket_id: int = Form(...),
    content: str = Form(...),
    is_internal: bool = Form(False),
    attachments: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
    store: AttachmentStore = Depends(get_attachment_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    return comment_service.create_comment(
        db,
        access,
        store,
        notifier,
        actor,
        ticket_id=ticket_id,
        content=content,
        is_internal=is_internal,
        uploads=attachments,
        max_attachments=settings.MAX_ATTACHMENTS,
    )


@router.put("/{comment_id}", response_model=CommentOut)
def update(
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
):
    return comment_service.update_comment(db, access, actor, comment_id, payload.content)


@router.delete("/{comment_id}", response_model=MessageOut)
def delete(
    comment_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
    store: AttachmentStore = Depends(get_attachment_store),
):
    comment_service.delete_comment(db, access, store, actor, comment_id)
    return MessageOut(message="Comment deleted successfully")
