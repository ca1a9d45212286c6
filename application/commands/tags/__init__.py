"""标签命令模块"""

from application.commands.tags.create_tag import (
    CreateTagCommand,
    CreateTagResult,
    CreateTagHandler,
)
from application.commands.tags.delete_tag import (
    DeleteTagCommand,
    DeleteTagResult,
    DeleteTagHandler,
)
from application.commands.tags.tag_emails import (
    TagEmailsCommand,
    TagEmailsResult,
    AddTagsToEmailsHandler,
    RemoveTagsFromEmailsHandler,
)

__all__ = [
    "CreateTagCommand",
    "CreateTagResult",
    "CreateTagHandler",
    "DeleteTagCommand",
    "DeleteTagResult",
    "DeleteTagHandler",
    "TagEmailsCommand",
    "TagEmailsResult",
    "AddTagsToEmailsHandler",
    "RemoveTagsFromEmailsHandler",
]
