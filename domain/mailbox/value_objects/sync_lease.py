"""同步租约值对象"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException


@dataclass(frozen=True)
class SyncLease(BaseValueObject):
    """
    同步租约

    带有效期的令牌，表示某一次同步独占一个邮箱账号。
    token 与 expires_at 必须同时为空或同时非空。

    Attributes:
        token: 租约令牌
        expires_at: 过期时间（UTC）
    """

    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def validate(self) -> None:
        if (self.token is None) != (self.expires_at is None):
            raise InvalidValueObjectException(
                value_object_type="SyncLease",
                value=self.token,
                reason="Lease token and expiry must be set together"
            )

    @classmethod
    def empty(cls) -> "SyncLease":
        """无租约"""
        return cls()

    @classmethod
    def issue(cls, now: datetime, horizon: timedelta) -> "SyncLease":
        """
        签发新租约

        Args:
            now: 当前时间
            horizon: 有效时长

        Returns:
            新的 SyncLease
        """
        return cls(token=str(uuid4()), expires_at=now + horizon)

    def renewed(self, now: datetime, horizon: timedelta) -> "SyncLease":
        """返回同一令牌、延长有效期后的租约"""
        if self.token is None:
            raise InvalidValueObjectException(
                value_object_type="SyncLease",
                value=None,
                reason="Cannot renew an empty lease"
            )
        return SyncLease(token=self.token, expires_at=now + horizon)

    @property
    def is_empty(self) -> bool:
        return self.token is None

    def is_held(self, now: datetime) -> bool:
        """租约存在且未过期"""
        return self.token is not None and self.expires_at is not None and self.expires_at > now

    def is_stale(self, now: datetime) -> bool:
        """租约存在但已过期，可被接管"""
        return self.token is not None and not self.is_held(now)

    def __repr__(self) -> str:
        if self.token is None:
            return "SyncLease(empty)"
        return f"SyncLease(token={self.token[:8]}..., expires_at={self.expires_at.isoformat()})"
