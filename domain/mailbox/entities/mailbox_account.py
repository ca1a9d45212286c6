"""邮箱账号聚合根实体"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Union
from uuid import UUID

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword
from domain.mailbox.value_objects.sync_lease import SyncLease


@dataclass(eq=False)
class MailboxAccount(BaseEntity):
    """
    邮箱账号聚合根

    用户连接的一个外部邮箱，包括：
    - 连接参数与加密凭证
    - 同步检查点（last_synced_at / sync_cursor）
    - 同步租约与进度

    租约字段只能通过仓储的条件更新原语修改（见 MailboxAccountRepository），
    实体本身只提供读取判断。

    Attributes:
        user_id: 所属用户
        name: 显示名称
        email: 邮箱地址
        username: IMAP 登录用户名
        imap_config: IMAP 服务器配置
        encrypted_password: 加密存储的密码
        last_synced_at: 最近一次同步结束时间（成功或失败）
        sync_cursor: 下一次收取的起点（仅在未中止的同步结束后推进）
        sync_lease: 同步租约
        sync_progress: 同步进度 0-100，未知为 None
        sync_status: 同步状态描述
    """

    user_id: str = field(default="")
    name: str = field(default="")
    email: str = field(default="")
    username: str = field(default="")
    imap_config: Optional[ImapConfig] = field(default=None)
    encrypted_password: Optional[EncryptedPassword] = field(default=None)
    last_synced_at: Optional[datetime] = field(default=None)
    sync_cursor: Optional[datetime] = field(default=None)
    sync_lease: SyncLease = field(default_factory=SyncLease.empty)
    sync_progress: Optional[int] = field(default=None)
    sync_status: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        """初始化后验证"""
        self._validate()

    def _validate(self) -> None:
        if not self.user_id:
            raise InvalidOperationException(
                operation="create_mailbox_account",
                reason="User ID cannot be empty"
            )

        if not self.email:
            raise InvalidOperationException(
                operation="create_mailbox_account",
                reason="Email cannot be empty"
            )

        if self.sync_progress is not None and not 0 <= self.sync_progress <= 100:
            raise InvalidOperationException(
                operation="create_mailbox_account",
                reason=f"Sync progress out of range: {self.sync_progress}"
            )

    @classmethod
    def create(
        cls,
        user_id: str,
        email: str,
        imap_config: ImapConfig,
        password: str,
        encryption_key: Union[str, bytes],
        username: Optional[str] = None,
        name: Optional[str] = None,
        id: Optional[UUID] = None,
    ) -> "MailboxAccount":
        """
        工厂方法：创建邮箱账号

        Args:
            user_id: 所属用户
            email: 邮箱地址
            imap_config: IMAP 配置
            password: 明文密码（将被加密存储）
            encryption_key: 加密密钥
            username: 登录用户名，默认与邮箱地址相同
            name: 显示名称，默认与邮箱地址相同
            id: 可选的 UUID，不提供则自动生成

        Returns:
            MailboxAccount 实例
        """
        email = email.strip()
        kwargs = {
            "user_id": user_id,
            "email": email,
            "username": (username or email).strip(),
            "name": (name or email).strip(),
            "imap_config": imap_config,
            "encrypted_password": EncryptedPassword.from_plain(password, encryption_key),
        }

        if id is not None:
            kwargs["id"] = id

        return cls(**kwargs)

    def get_decrypted_password(self, encryption_key: Union[str, bytes]) -> str:
        """
        获取解密后的密码

        Raises:
            InvalidOperationException: 如果没有设置密码
        """
        if self.encrypted_password is None:
            raise InvalidOperationException(
                operation="get_decrypted_password",
                reason="No password has been set"
            )

        return self.encrypted_password.decrypt(encryption_key)

    def is_sync_in_progress(self, now: datetime) -> bool:
        """存在未过期的租约"""
        return self.sync_lease.is_held(now)

    def is_due_for_sync(self, now: datetime, stale_threshold: timedelta) -> bool:
        """
        是否需要后台同步

        未被租约占用（或租约已过期），且从未同步或距上次同步超过阈值。

        Args:
            now: 当前时间
            stale_threshold: 过期阈值

        Returns:
            True 表示应触发同步
        """
        if self.sync_lease.is_held(now):
            return False
        if self.last_synced_at is None:
            return True
        return now - self.last_synced_at > stale_threshold
