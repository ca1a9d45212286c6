"""删除标签命令"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from domain.mail.repositories.tag_repository import TagRepository


@dataclass
class DeleteTagCommand:
    """删除标签命令"""

    user_id: str
    tag_id: str


@dataclass
class DeleteTagResult:
    """命令执行结果"""

    success: bool
    tag_id: str = ""
    message: str = ""
    error_code: Optional[str] = None


class DeleteTagHandler:
    """删除标签处理器（邮件上的该标签一并移除）"""

    def __init__(
        self,
        tag_repository: TagRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._tags = tag_repository
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: DeleteTagCommand) -> DeleteTagResult:
        try:
            tag_uuid: Optional[UUID] = UUID(command.tag_id)
        except ValueError:
            tag_uuid = None

        tag = self._tags.get_by_id_for_user(tag_uuid, command.user_id) if tag_uuid else None
        if tag is None:
            return DeleteTagResult(
                success=False,
                tag_id=command.tag_id,
                message=f"Tag with ID '{command.tag_id}' not found",
                error_code="TAG_NOT_FOUND",
            )

        self._tags.remove(tag)
        self._logger.info(f"Tag deleted: tag_id={tag.id}, user={command.user_id}")

        return DeleteTagResult(
            success=True,
            tag_id=command.tag_id,
            message=f"Tag '{tag.name}' deleted successfully",
        )
