# helpdesk/attachment/routes.py
from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from helpdesk.access.policy import AccessControl, Action, Actor
from helpdesk.access.visibility import can_see_attachment
from helpdesk.attachment.models import Attachment
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_access, get_actor, get_attachment_store
from helpdesk.core.errors import Forbidden, NotFound
from helpdesk.core.logging_config import logger

router = APIRouter(prefix="/attachments", tags=["Attachments"])


@router.get("/{attachment_id}")
def download(
    attachment_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    access: AccessControl = Depends(get_access),
    store: AttachmentStore = Depends(get_attachment_store),
):
    attachment = db.get(Attachment, attachment_id)
    if attachment is None:
        raise access.missing(actor, Action.TICKET_READ, "Attachment not found")
    if not can_see_attachment(access, actor, attachment):
        raise Forbidden()

    path = store.resolve(attachment.file_path)
    if path is None:
        logger.error(f"Attachment {attachment_id} is missing on disk: {attachment.file_path}")
        raise NotFound("Attachment file not found")
    return FileResponse(path, media_type=attachment.mime_type, filename=attachment.original_filename)
