"""同步前的计费检查接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class BillingCheck:
    """
    计费检查结果

    Attributes:
        allowed: 是否允许同步
        reason: 拒绝原因
    """

    allowed: bool
    reason: Optional[str] = None


class BillingGate(ABC):
    """
    计费/存储配额检查

    由触发层（Handler、后台同步服务）在发起同步前调用，SyncCoordinator 不直接依赖。
    """

    @abstractmethod
    def can_sync(self, user_id: str) -> BillingCheck:
        raise NotImplementedError
