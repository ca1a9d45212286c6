"""标签仓储接口"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from domain.mail.entities.tag import Tag


class TagRepository(ABC):
    """标签仓储"""

    @abstractmethod
    def add(self, tag: Tag) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_by_id_for_user(self, tag_id: UUID, user_id: str) -> Optional[Tag]:
        """获取属于该用户的标签，不存在或不属于该用户返回 None"""
        raise NotImplementedError

    @abstractmethod
    def remove(self, tag: Tag) -> None:
        """删除标签及其全部邮件关联"""
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[Tag]:
        raise NotImplementedError

    @abstractmethod
    def filter_owned(self, user_id: str, tag_ids: Sequence[UUID]) -> List[UUID]:
        """
        过滤出属于该用户的标签 ID

        Args:
            user_id: 用户 ID
            tag_ids: 待校验的标签 ID

        Returns:
            属于该用户的标签 ID（保持输入顺序）
        """
        raise NotImplementedError
