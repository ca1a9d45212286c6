"""用量定时刷新"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from domain.common.base_entity import utc_now
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.usage.services.usage_recalculator import UsageRecalculator


@dataclass
class UsageRefreshResult:
    """一次全量刷新的结果"""

    refreshed: int = 0
    failed: int = 0


class UsageRefreshScheduler:
    """
    用量定时刷新调度器

    每天在指定的 UTC 整点重算全部用户的用量。生命周期由 start()/stop() 显式控制，
    时钟和 sleep 可注入，测试可以逐步驱动。
    """

    def __init__(
        self,
        account_repository: MailboxAccountRepository | Callable[[], MailboxAccountRepository],
        usage_recalculator: UsageRecalculator,
        run_at_hour_utc: int = 0,
        run_on_start: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            account_repository: 邮箱账号仓储实例或工厂函数（用于列出用户）
            usage_recalculator: 用量重算
            run_at_hour_utc: 每天执行的 UTC 小时（0-23）
            run_on_start: 启动时是否先执行一次
            clock: 时钟
            sleep: 等待函数
            logger: 可选的日志记录器
        """
        if not 0 <= run_at_hour_utc <= 23:
            raise ValueError(f"run_at_hour_utc must be between 0 and 23, got {run_at_hour_utc}")

        if callable(account_repository) and not isinstance(account_repository, MailboxAccountRepository):
            self._account_repository_factory: Callable[[], MailboxAccountRepository] = account_repository
        else:
            self._account_repository_factory = lambda repo=account_repository: repo  # type: ignore
        self._recalculator = usage_recalculator
        self._hour = run_at_hour_utc
        self._run_on_start = run_on_start
        self._clock = clock or utc_now
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None

    def seconds_until_next_run(self, now: datetime) -> float:
        """距离下一次执行的秒数（恰好到点时返回 0）"""
        target = now.replace(hour=self._hour, minute=0, second=0, microsecond=0)
        if target < now:
            target += timedelta(days=1)
        return (target - now).total_seconds()

    async def start(self) -> None:
        if self._running:
            self._logger.warning("Usage refresh scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        self._logger.info(f"Usage refresh scheduler started (daily at {self._hour:02d}:00 UTC)")

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._logger.info("Usage refresh scheduler stopped")

    async def refresh_all(self) -> UsageRefreshResult:
        """
        立即重算全部用户的用量

        单个用户失败只记录日志，继续处理其余用户。
        """
        result = UsageRefreshResult()

        try:
            user_ids = self._account_repository_factory().list_user_ids()
        except Exception as e:
            self._logger.error(f"Failed to list users for usage refresh: {e}")
            return result

        for user_id in user_ids:
            try:
                self._recalculator.recalculate(user_id)
                result.refreshed += 1
            except Exception as e:
                result.failed += 1
                self._logger.error(f"Failed to refresh usage for user {user_id}: {e}")
            await asyncio.sleep(0)

        self._logger.info(f"Usage refresh complete: {result.refreshed} refreshed, {result.failed} failed")
        return result

    async def _loop(self) -> None:
        if self._run_on_start:
            await self.refresh_all()

        while self._running:
            delay = self.seconds_until_next_run(self._clock())
            # 到点后至少等待 1 秒，避免同一整点重复执行
            await self._sleep(max(delay, 1.0))
            if self._running:
                await self.refresh_all()
