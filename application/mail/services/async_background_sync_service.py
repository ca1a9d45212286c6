"""异步后台同步服务实现"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from uuid import UUID

from application.mail.services.background_sync_service import BackgroundSyncService, SyncCycleResult
from application.mail.services.sync_coordinator import SyncCoordinator, SyncOutcome
from domain.common.base_entity import utc_now
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.usage.services.billing_gate import BillingGate


class AsyncBackgroundSyncService(BackgroundSyncService):
    """
    异步后台同步服务实现

    使用 asyncio 实现：
    - 周期扫描过期账号（每轮重新查询，从未同步的优先）
    - 读路径提交（submit 立即返回，不把同步错误带回读请求）
    - 并发限制（Semaphore）与排队上限
    - 单次同步超时（wait_for）
    - 同一账号重复提交合并；不同进程间的重复由租约兜底
    """

    def __init__(
        self,
        account_repository: MailboxAccountRepository | Callable[[], MailboxAccountRepository],
        sync_coordinator: Callable[[], SyncCoordinator],
        billing_gate: BillingGate,
        interval: float = BackgroundSyncService.DEFAULT_INTERVAL,
        stale_after: float = 14 * 60,
        max_concurrent: int = BackgroundSyncService.DEFAULT_MAX_CONCURRENT,
        queue_size: int = BackgroundSyncService.DEFAULT_QUEUE_SIZE,
        sync_timeout: float = BackgroundSyncService.DEFAULT_TIMEOUT,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化后台同步服务

        Args:
            account_repository: 邮箱账号仓储实例或工厂函数
            sync_coordinator: 同步协调器工厂（每次同步一个新实例，仓储会话互不共享）
            billing_gate: 同步前的计费检查
            interval: 扫描间隔（秒）
            stale_after: 距上次同步超过该秒数视为过期
            max_concurrent: 最大并发同步数
            queue_size: 排队与进行中的同步总数上限
            sync_timeout: 单次同步超时（秒）
            clock: 时钟
            logger: 可选的日志记录器
        """
        if callable(account_repository) and not isinstance(account_repository, MailboxAccountRepository):
            self._account_repository_factory: Callable[[], MailboxAccountRepository] = account_repository
        else:
            self._account_repository_factory = lambda repo=account_repository: repo  # type: ignore
        self._coordinator_factory = sync_coordinator
        self._billing_gate = billing_gate
        self._interval = interval
        self._stale_after = timedelta(seconds=stale_after)
        self._max_concurrent = max_concurrent
        self._queue_size = queue_size
        self._timeout = sync_timeout
        self._clock = clock or utc_now
        self._logger = logger or logging.getLogger(__name__)

        self._semaphore: Optional[asyncio.Semaphore] = None
        self._task: Optional[asyncio.Task] = None
        self._pending: Dict[UUID, asyncio.Task] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None

    @property
    def pending_count(self) -> int:
        """排队和进行中的同步数"""
        return len(self._pending)

    async def start(self) -> None:
        if self._running:
            self._logger.warning("Background sync service already running")
            return

        self._running = True
        self._semaphore = asyncio.Semaphore(self._max_concurrent)
        self._task = asyncio.create_task(self._scan_loop())
        self._logger.info(
            f"Background sync service started "
            f"(interval={self._interval}s, "
            f"max_concurrent={self._max_concurrent}, "
            f"queue_size={self._queue_size}, "
            f"timeout={self._timeout}s)"
        )

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        pending = list(self._pending.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()

        self._semaphore = None
        self._logger.info("Background sync service stopped")

    def submit(self, account: MailboxAccount) -> bool:
        return self._submit(account) is not None

    async def run_cycle(self) -> SyncCycleResult:
        now = self._clock()
        try:
            accounts = self._account_repository_factory().list_due_for_sync(
                cutoff=now - self._stale_after,
                now=now,
                limit=self._queue_size,
            )
        except Exception as e:
            self._logger.error(f"Failed to load accounts due for sync: {e}")
            return SyncCycleResult()

        result = SyncCycleResult(checked=len(accounts))
        if not accounts:
            self._logger.debug("No accounts due for sync")
            return result

        tasks: List[asyncio.Task] = []
        for account in accounts:
            task = self._submit(account)
            if task is not None:
                tasks.append(task)
        result.started = len(tasks)

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for outcome in outcomes:
            if not isinstance(outcome, SyncOutcome) or outcome.aborted:
                result.errors += 1

        self._logger.info(
            f"Background sync cycle complete: {result.checked} due, "
            f"{result.started} started, {result.errors} errors"
        )
        return result

    async def _scan_loop(self) -> None:
        # 启动后立即执行第一轮
        await self.run_cycle()

        while self._running:
            await asyncio.sleep(self._interval)
            if self._running:
                await self.run_cycle()

    def _submit(self, account: MailboxAccount) -> Optional[asyncio.Task]:
        if not self._running or self._semaphore is None:
            self._logger.debug(f"[{account.email}] Background sync service not running, ignoring submit")
            return None

        if account.id in self._pending:
            return None

        if len(self._pending) >= self._queue_size:
            self._logger.warning(f"[{account.email}] Background sync queue full, dropping submit")
            return None

        task = asyncio.get_running_loop().create_task(self._run_one(account))
        self._pending[account.id] = task
        task.add_done_callback(lambda _t, account_id=account.id: self._pending.pop(account_id, None))
        return task

    async def _run_one(self, account: MailboxAccount) -> Optional[SyncOutcome]:
        """执行一次后台同步；所有错误都在这里记录，不向外传播"""
        try:
            check = self._billing_gate.can_sync(account.user_id)
            if not check.allowed:
                self._logger.info(f"[{account.email}] Sync not allowed: {check.reason}")
                return SyncOutcome(errors=[f"Sync not allowed: {check.reason}"])

            async with self._semaphore:
                coordinator = self._coordinator_factory()
                outcome = await asyncio.wait_for(
                    coordinator.start_sync(account.id),
                    timeout=self._timeout,
                )

            if outcome.aborted:
                self._logger.warning(f"[{account.email}] Background sync aborted: {outcome.errors[-1]}")
            return outcome

        except asyncio.TimeoutError:
            self._logger.warning(f"[{account.email}] Background sync timed out after {self._timeout}s")
            return None

        except Exception as e:
            self._logger.error(f"[{account.email}] Background sync failed: {e}")
            return None
