"""用量重算接口"""

from abc import ABC, abstractmethod


class UsageRecalculator(ABC):
    """同步改变存储用量后重算用户用量"""

    @abstractmethod
    def recalculate(self, user_id: str) -> None:
        raise NotImplementedError
