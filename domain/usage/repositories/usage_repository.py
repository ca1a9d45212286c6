"""用量仓储接口"""

from abc import ABC, abstractmethod
from typing import Optional

from domain.usage.value_objects.usage_snapshot import UsageSnapshot


class UsageRepository(ABC):
    """用量快照的计算与读写"""

    @abstractmethod
    def compute(self, user_id: str) -> UsageSnapshot:
        """按当前数据实时统计用户用量"""
        raise NotImplementedError

    @abstractmethod
    def save(self, snapshot: UsageSnapshot) -> None:
        """写入（覆盖）用户的用量快照"""
        raise NotImplementedError

    @abstractmethod
    def get(self, user_id: str) -> Optional[UsageSnapshot]:
        """读取最近一次快照"""
        raise NotImplementedError
