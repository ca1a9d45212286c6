"""邮箱账号仓储接口"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.value_objects.sync_lease import SyncLease


class MailboxAccountRepository(ABC):
    """
    邮箱账号仓储接口

    除常规增删查外，提供同步租约的条件更新原语。
    租约原语都是单条 compare-and-set 语句，返回是否生效。
    """

    @abstractmethod
    def add(self, account: MailboxAccount) -> None:
        """
        添加邮箱账号

        Raises:
            DuplicateEntityException: 同一用户下邮箱地址已存在
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, account_id: UUID) -> Optional[MailboxAccount]:
        """
        根据 ID 获取邮箱账号

        Returns:
            邮箱账号实体，不存在返回 None
        """
        raise NotImplementedError

    @abstractmethod
    def exists_for_user(self, user_id: str, email: str) -> bool:
        """检查用户是否已连接该邮箱地址"""
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[MailboxAccount]:
        """获取用户的全部邮箱账号（按创建时间升序）"""
        raise NotImplementedError

    @abstractmethod
    def list_ids_by_user(self, user_id: str) -> List[UUID]:
        """获取用户拥有的邮箱账号 ID（用于授权范围）"""
        raise NotImplementedError

    @abstractmethod
    def list_user_ids(self) -> List[str]:
        """获取拥有至少一个邮箱账号的用户 ID"""
        raise NotImplementedError

    @abstractmethod
    def list_due_for_sync(self, cutoff: datetime, now: datetime, limit: int = 100) -> List[MailboxAccount]:
        """
        获取需要后台同步的账号

        未被有效租约占用，且从未同步或 last_synced_at 早于 cutoff。
        从未同步的排在前面，其余按 last_synced_at 升序。

        Args:
            cutoff: 过期分界时间
            now: 当前时间（判断租约是否有效）
            limit: 最大返回数量
        """
        raise NotImplementedError

    @abstractmethod
    def remove(self, account: MailboxAccount) -> None:
        """删除邮箱账号（级联删除邮件、附件记录和账号范围的规则）"""
        raise NotImplementedError

    # ============ 同步租约原语 ============

    @abstractmethod
    def try_acquire_lease(self, account_id: UUID, lease: SyncLease, now: datetime, status: str) -> bool:
        """
        尝试获取同步租约

        仅当账号当前没有租约或租约已过期（expires_at <= now）时写入新租约，
        并把进度置 0、状态置为 status。

        Returns:
            True 表示获取成功
        """
        raise NotImplementedError

    @abstractmethod
    def renew_lease(self, account_id: UUID, lease: SyncLease) -> bool:
        """
        续期租约（令牌必须匹配）

        Returns:
            False 表示租约已被他人接管
        """
        raise NotImplementedError

    @abstractmethod
    def update_sync_progress(self, account_id: UUID, token: str, progress: Optional[int], status: str) -> bool:
        """更新同步进度（令牌必须匹配）"""
        raise NotImplementedError

    @abstractmethod
    def release_lease(
        self,
        account_id: UUID,
        token: str,
        finished_at: datetime,
        progress: Optional[int],
        status: str,
        cursor: Optional[datetime] = None,
    ) -> bool:
        """
        释放租约（令牌必须匹配）

        清空令牌和过期时间，写入 last_synced_at、最终进度与状态；
        cursor 不为 None 时同时推进 sync_cursor。

        Returns:
            False 表示租约已被他人接管，什么也没有写入
        """
        raise NotImplementedError
