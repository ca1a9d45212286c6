"""实体基类"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4


def utc_now() -> datetime:
    """返回当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class BaseEntity:
    """
    实体基类

    实体通过 ID 标识，而不是属性值。

    Attributes:
        id: 实体唯一标识
        created_at: 创建时间
        updated_at: 最后更新时间
        version: 版本号（乐观锁）
    """

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = field(default=None)
    version: int = field(default=0)

    def update_timestamp(self) -> None:
        """更新修改时间并递增版本号"""
        self.updated_at = utc_now()
        self.version += 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseEntity):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))
