# helpdesk/models.py
# Importing this module registers every table on Base.metadata.
from helpdesk.attachment.models import Attachment  # noqa: F401
from helpdesk.auth.models import LifecycleToken  # noqa: F401
from helpdesk.comment.models import Comment  # noqa: F401
from helpdesk.group.models import Group, GroupMembership  # noqa: F401
from helpdesk.setting.models import Setting  # noqa: F401
from helpdesk.ticket.models import Ticket  # noqa: F401
from helpdesk.user.models import User  # noqa: F401
