"""创建标签命令"""

import logging
from dataclasses import dataclass
from typing import Optional

from domain.common.exceptions import DomainException
from domain.mail.entities.tag import Tag
from domain.mail.repositories.tag_repository import TagRepository

DEFAULT_TAG_COLOR = "#6c757d"


@dataclass
class CreateTagCommand:
    """创建标签命令

    Attributes:
        user_id: 调用者
        name: 标签名（同一用户内唯一）
        color: 颜色，未提供时使用默认灰色
    """

    user_id: str
    name: str
    color: Optional[str] = None


@dataclass
class CreateTagResult:
    """命令执行结果"""

    success: bool
    tag_id: Optional[str] = None
    message: str = ""
    error_code: Optional[str] = None


class CreateTagHandler:
    """创建标签处理器"""

    def __init__(
        self,
        tag_repository: TagRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._tags = tag_repository
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: CreateTagCommand) -> CreateTagResult:
        """
        处理创建标签命令

        Returns:
            CreateTagResult；重名时 error_code 为 DUPLICATE_ENTITY
        """
        try:
            tag = Tag(
                user_id=command.user_id,
                name=command.name.strip(),
                color=command.color or DEFAULT_TAG_COLOR,
            )
            self._tags.add(tag)
        except DomainException as e:
            return CreateTagResult(
                success=False,
                message=e.message,
                error_code=e.code,
            )

        self._logger.info(f"Tag created: tag_id={tag.id}, user={command.user_id}, name={tag.name}")

        return CreateTagResult(
            success=True,
            tag_id=str(tag.id),
            message="Tag created successfully",
        )
