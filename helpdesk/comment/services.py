# helpdesk/comment/services.py
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor, Resource
from helpdesk.access.visibility import present_comments
from helpdesk.attachment.storage import AttachmentStore, StoredFile
from helpdesk.comment.models import Comment
from helpdesk.comment.schemas import CommentOut
from helpdesk.core.errors import Forbidden, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.notification import services as notify
from helpdesk.notification.dispatcher import Notifier
from helpdesk.ticket import services as ticket_service


def list_for_ticket(db: Session, access: AccessControl, actor: Actor, ticket_id: int) -> list[CommentOut]:
    ticket = ticket_service.load_ticket(db, access, actor, ticket_id, Action.COMMENT_READ)
    return present_comments(access, actor, ticket.comments)


def create_comment(
    db: Session,
    access: AccessControl,
    store: AttachmentStore,
    notifier: Notifier,
    actor: Actor,
    ticket_id: int,
    content: str,
    is_internal: bool,
    uploads: list[UploadFile],
    max_attachments: int,
) -> Comment:
    if not content.strip():
        raise ValidationFailed("Content is required")
    ticket = ticket_service.load_ticket(db, access, actor, ticket_id, Action.COMMENT_CREATE)
    internal = access.effective_internal(actor, is_internal)
    uploads = ticket_service.check_upload_count(uploads, max_attachments)

    stored = store.save_all(uploads)
    try:
        comment = Comment(ticket_id=ticket.id, user_id=actor.id, content=content, is_internal=internal)
        db.add(comment)
        db.flush()
        ticket_service.attach_files(db, stored, ticket.id, actor.id, comment_id=comment.id)
        ticket.updated_at = datetime.now(timezone.utc)
        db.commit()
    except Exception:
        db.rollback()
        store.discard(stored)
        raise

    db.refresh(comment)
    logger.info(f"Comment added to ticket {ticket.ticket_number} by user {actor.id}{' (internal)' if internal else ''}")

    if internal:
        notify.notify_internal_comment(db, notifier, ticket, comment)
    else:
        notify.notify_new_comment(db, notifier, ticket, comment)
    return comment


def update_comment(db: Session, access: AccessControl, actor: Actor, comment_id: int, content: str) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise access.missing(actor, Action.COMMENT_EDIT, "Comment not found")
    if not access.decide(actor, Action.COMMENT_EDIT, Resource(author_id=comment.user_id)):
        raise Forbidden("Only the comment author can edit this comment")
    comment.content = content
    db.commit()
    db.refresh(comment)
    logger.info(f"Comment {comment_id} updated by user {actor.id}")
    return comment


def delete_comment(db: Session, access: AccessControl, store: AttachmentStore, actor: Actor, comment_id: int) -> None:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise access.missing(actor, Action.COMMENT_DELETE, "Comment not found")
    access.authorize(actor, Action.COMMENT_DELETE, Resource(author_id=comment.user_id))
    files = [StoredFile.of(a) for a in comment.attachments]
    db.delete(comment)
    db.commit()
    store.discard(files)
    logger.info(f"Comment {comment_id} deleted by user {actor.id}")
