"""邮件仓储接口"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from domain.mail.entities.email import Email
from domain.mail.value_objects.email_folder import EmailFolder
from domain.rules.value_objects.rule_conditions import RuleConditions


class EmailRepository(ABC):
    """
    邮件仓储接口

    批量操作都以邮件 ID 为键，调用方先一次性读出 ID 集合再执行修改。
    """

    @abstractmethod
    def add(self, email: Email) -> None:
        """
        添加邮件

        Raises:
            DuplicateEntityException: (account_id, message_id) 已存在
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, email_id: UUID) -> Optional[Email]:
        """根据 ID 获取邮件"""
        raise NotImplementedError

    @abstractmethod
    def get_by_message_id(self, account_id: UUID, message_id: str) -> Optional[Email]:
        """
        按账号内的 Message-ID 查找邮件

        Args:
            account_id: 邮箱账号 ID
            message_id: 远程 Message-ID

        Returns:
            邮件实体，不存在返回 None
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, email: Email) -> None:
        """更新邮件"""
        raise NotImplementedError

    @abstractmethod
    def list_filtered(
        self,
        account_ids: Sequence[UUID],
        folder: Optional[EmailFolder] = None,
        is_read: Optional[bool] = None,
        is_starred: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Email], int]:
        """
        分页查询邮件（按接收时间倒序）

        Returns:
            Tuple[items, total_count]
        """
        raise NotImplementedError

    @abstractmethod
    def list_by_ids(self, email_ids: Sequence[UUID], account_ids: Sequence[UUID]) -> List[Email]:
        """获取指定账号范围内的邮件（范围外的 ID 被忽略）"""
        raise NotImplementedError

    @abstractmethod
    def count_matching(self, account_ids: Sequence[UUID], conditions: RuleConditions) -> int:
        """
        统计账号范围内满足规则条件的邮件数

        Args:
            account_ids: 账号范围
            conditions: 规则条件（AND），为空时返回 0
        """
        raise NotImplementedError

    @abstractmethod
    def list_matching_ids(self, account_ids: Sequence[UUID], conditions: RuleConditions) -> List[UUID]:
        """
        一次性读出满足规则条件的邮件 ID（按 ID 排序）

        与 count_matching 使用同一组查询条件。
        """
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, email_ids: Sequence[UUID]) -> int:
        """批量标记已读，返回受影响行数"""
        raise NotImplementedError

    @abstractmethod
    def star(self, email_ids: Sequence[UUID]) -> int:
        """批量加星，返回受影响行数"""
        raise NotImplementedError

    @abstractmethod
    def move_to_folder(self, email_ids: Sequence[UUID], folder: EmailFolder) -> int:
        """批量移动文件夹，返回受影响行数"""
        raise NotImplementedError

    @abstractmethod
    def delete_by_ids(self, email_ids: Sequence[UUID]) -> int:
        """彻底删除邮件（附件记录级联删除），返回删除行数"""
        raise NotImplementedError

    @abstractmethod
    def add_tags(self, email_ids: Sequence[UUID], tag_ids: Sequence[UUID]) -> int:
        """
        给邮件打标签，已存在的关联忽略

        Returns:
            新增的关联数
        """
        raise NotImplementedError

    @abstractmethod
    def remove_tags(self, email_ids: Sequence[UUID], tag_ids: Sequence[UUID]) -> int:
        """
        移除邮件上的标签

        Returns:
            删除的关联数
        """
        raise NotImplementedError
