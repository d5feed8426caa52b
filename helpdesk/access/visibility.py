# helpdesk/access/visibility.py
"""What an actor may see of a ticket's conversation and its files."""

from typing import Iterable

from helpdesk.access.policy import AccessControl, Action, Actor, Resource
from helpdesk.attachment.models import Attachment
from helpdesk.comment.models import Comment
from helpdesk.comment.schemas import CommentOut


def can_see_comment(access: AccessControl, actor: Actor, comment: Comment) -> bool:
    if comment.is_internal:
        return access.decide(actor, Action.COMMENT_READ_INTERNAL)
    return True


def visible_comments(access: AccessControl, actor: Actor, comments: Iterable[Comment]) -> list[Comment]:
    return [c for c in comments if can_see_comment(access, actor, c)]


def present_comments(access: AccessControl, actor: Actor, comments: Iterable[Comment]) -> list[CommentOut]:
    """
    Shapes the visible comments for output.

    Attachments are reduced to metadata; stored paths and file contents are
    never part of the payload.
    """
    return [CommentOut.model_validate(c) for c in visible_comments(access, actor, comments)]


def can_see_attachment(access: AccessControl, actor: Actor, attachment: Attachment) -> bool:
    """Attachments inherit the visibility of the ticket and, if any, the comment they belong to."""
    ticket = attachment.ticket
    if ticket is None and attachment.comment is not None:
        ticket = attachment.comment.ticket
    if ticket is None:
        return False
    if not access.decide(actor, Action.TICKET_READ, Resource(owner_id=ticket.customer_id)):
        return False
    if attachment.comment is not None:
        return can_see_comment(access, actor, attachment.comment)
    return True
