"""领域事件基类"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from domain.common.base_entity import utc_now


@dataclass(frozen=True)
class DomainEvent:
    """
    领域事件基类

    Attributes:
        event_id: 事件唯一标识
        occurred_at: 发生时间
        aggregate_id: 关联聚合根 ID
    """

    aggregate_id: UUID = None  # type: ignore
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    def event_type(self) -> str:
        return type(self).__name__
