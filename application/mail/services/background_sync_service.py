"""后台同步服务接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from domain.mailbox.entities.mailbox_account import MailboxAccount


@dataclass
class SyncCycleResult:
    """
    一轮后台扫描的结果

    Attributes:
        checked: 需要同步的账号数
        started: 实际提交的同步数
        errors: 失败或中止的同步数
    """

    checked: int = 0
    started: int = 0
    errors: int = 0


class BackgroundSyncService(ABC):
    """
    后台同步服务接口

    - 周期性扫描过期账号并提交同步
    - 接受读路径的同步请求（不等待结果）
    - 有界并发，每个任务独立处理自己的错误
    - 显式的启动和停止
    """

    DEFAULT_INTERVAL: float = 60.0  # 默认扫描间隔（秒）
    DEFAULT_MAX_CONCURRENT: int = 4  # 默认最大并发同步数
    DEFAULT_QUEUE_SIZE: int = 100  # 默认最多排队的同步数
    DEFAULT_TIMEOUT: float = 600.0  # 默认单次同步超时（秒）

    @property
    @abstractmethod
    def is_running(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def start(self) -> None:
        """
        启动服务

        启动后立即执行第一轮扫描，之后按间隔周期执行；已在运行时不重复启动。
        """
        raise NotImplementedError

    @abstractmethod
    async def stop(self) -> None:
        """停止服务，取消排队和进行中的同步（租约由同步自身释放）"""
        raise NotImplementedError

    @abstractmethod
    def submit(self, account: MailboxAccount) -> bool:
        """
        提交一个账号的同步，不等待完成

        同一账号已在排队时合并为一次；服务未运行或队列已满时拒绝。

        Returns:
            True 表示已提交
        """
        raise NotImplementedError

    @abstractmethod
    async def run_cycle(self) -> SyncCycleResult:
        """执行一轮扫描并等待本轮提交的同步结束"""
        raise NotImplementedError
