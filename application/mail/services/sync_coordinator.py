"""邮箱同步协调器"""

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
from uuid import UUID

from application.mail.services.message_ingester import MessageIngester
from domain.common.base_entity import utc_now
from domain.common.exceptions import MailboxConnectionError
from domain.mail.entities.email import Email
from domain.mail.events.mail_events import MailboxUpdated, MailboxUpdateType
from domain.mail.services.mailbox_update_publisher import MailboxUpdatePublisher
from domain.mail.value_objects.raw_message import RawMessage
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.mailbox.services.mailbox_fetcher import MailboxFetcher
from domain.mailbox.value_objects.sync_lease import SyncLease
from domain.usage.services.usage_recalculator import UsageRecalculator

if TYPE_CHECKING:
    from application.rules.services.rule_engine import RuleEngine

SYNC_IN_PROGRESS = "sync already in progress"
STARTING_STATUS = "Starting sync..."


@dataclass
class SyncOutcome:
    """
    单个账号一次同步的结果

    Attributes:
        synced: 新入库的邮件数
        existing: 已在本地、只合并了标志的邮件数
        skipped: 入库失败而跳过的邮件数
        errors: 错误描述
        aborted: 是否因连接失败等原因中止
    """

    synced: int = 0
    existing: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    aborted: bool = False

    @classmethod
    def in_progress(cls) -> "SyncOutcome":
        return cls(errors=[SYNC_IN_PROGRESS])

    @property
    def was_in_progress(self) -> bool:
        """另一轮同步正在进行（提示性结果，不是错误）"""
        return self.errors == [SYNC_IN_PROGRESS] and self.synced == 0 and self.skipped == 0

    @property
    def is_total_failure(self) -> bool:
        """
        本轮整体失败：中止，或收取到的邮件全部入库失败

        已存在的邮件计为成功处理；规则转发失败等局部错误不算失败。
        """
        if self.was_in_progress:
            return False
        return self.aborted or (self.synced == 0 and self.existing == 0 and self.skipped > 0)


@dataclass
class _PassState:
    lease: SyncLease
    superseded: bool = False


class SyncCoordinator:
    """
    邮箱同步协调器

    每个账号同一时刻至多一轮同步。互斥完全依赖仓储的租约 compare-and-set：
    1. 读账号；租约有效则直接返回"sync already in progress"
    2. 条件写入新租约（无租约或已过期才成功），失败同样视为进行中
    3. 从检查点收取邮件，长时间运行时周期性续租
    4. 逐封入库，单封失败不影响整轮；连接失败中止本轮
    5. 释放租约、写入最终状态；未中止时推进检查点
    6. 重算用量，失败只记日志
    """

    PROGRESS_UPDATE_EVERY = 10

    def __init__(
        self,
        account_repository: MailboxAccountRepository,
        mailbox_fetcher: MailboxFetcher,
        message_ingester: MessageIngester,
        usage_recalculator: UsageRecalculator,
        rule_engine: Optional["RuleEngine"] = None,
        publisher: Optional[MailboxUpdatePublisher] = None,
        lease_minutes: float = 60,
        renew_interval: float = 30,
        clock: Optional[Callable[[], datetime]] = None,
        executor: Optional[Executor] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化同步协调器

        Args:
            account_repository: 邮箱账号仓储（提供租约原语）
            mailbox_fetcher: 远程收取
            message_ingester: 入库
            usage_recalculator: 用量重算
            rule_engine: 新邮件的规则评估，None 表示不评估
            publisher: 同步事件推送
            lease_minutes: 租约时长（分钟）
            renew_interval: 续租间隔（秒）
            clock: 时钟，默认 UTC 当前时间
            executor: 执行阻塞收取的线程池，None 使用事件循环默认线程池
            logger: 可选的日志记录器
        """
        self._accounts = account_repository
        self._fetcher = mailbox_fetcher
        self._ingester = message_ingester
        self._usage = usage_recalculator
        self._rule_engine = rule_engine
        self._publisher = publisher
        self._lease_horizon = timedelta(minutes=lease_minutes)
        self._renew_interval = renew_interval
        self._clock = clock or utc_now
        self._executor = executor
        self._logger = logger or logging.getLogger(__name__)

    async def start_sync(self, account_id: UUID) -> SyncOutcome:
        """
        同步一个邮箱账号

        错误不会抛给调用方，全部汇总在返回结果中。

        Args:
            account_id: 邮箱账号 ID

        Returns:
            SyncOutcome
        """
        account = self._accounts.get_by_id(account_id)
        if account is None:
            return SyncOutcome(errors=[f"Mailbox account not found: {account_id}"], aborted=True)

        now = self._clock()
        if account.is_sync_in_progress(now):
            self._logger.debug(f"[{account.email}] Sync already in progress, skipping")
            return SyncOutcome.in_progress()

        lease = SyncLease.issue(now, self._lease_horizon)
        if not self._accounts.try_acquire_lease(account.id, lease, now, STARTING_STATUS):
            self._logger.debug(f"[{account.email}] Lost lease race, skipping")
            return SyncOutcome.in_progress()

        self._logger.info(f"[{account.email}] Sync started")
        await self._publish(account, MailboxUpdateType.SYNC_STARTED)

        state = _PassState(lease=lease)
        outcome = SyncOutcome()
        failure: Optional[str] = None
        renewer = asyncio.create_task(self._keep_lease_alive(account, state))

        try:
            await self._run_pass(account, state, outcome)
        except MailboxConnectionError as e:
            failure = e.message
            self._logger.error(f"[{account.email}] Sync aborted, connection failed: {e.message}")
        except asyncio.CancelledError:
            failure = "Sync cancelled"
            self._logger.warning(f"[{account.email}] Sync cancelled")
            raise
        except Exception as e:
            failure = str(e)
            self._logger.exception(f"[{account.email}] Sync aborted: {e}")
        finally:
            await self._stop_renewer(account, renewer)
            if failure is not None:
                outcome.aborted = True
                outcome.errors.append(f"Sync failed: {failure}")
            status = self._finish(account, state, outcome, started_at=now, failure=failure)

        if failure is None:
            await self._publish(account, MailboxUpdateType.SYNC_COMPLETED, synced=outcome.synced)
        else:
            await self._publish(account, MailboxUpdateType.ERROR, message=status)

        self._recalculate_usage(account)
        return outcome

    async def sync_all(self, user_id: str) -> Dict[UUID, SyncOutcome]:
        """
        并发同步用户的全部账号

        各账号独立进行，一个账号失败不会取消其他账号。

        Args:
            user_id: 用户 ID

        Returns:
            账号 ID 到同步结果的映射
        """
        accounts = self._accounts.list_by_user(user_id)
        if not accounts:
            return {}

        results = await asyncio.gather(
            *(self.start_sync(account.id) for account in accounts),
            return_exceptions=True,
        )

        outcomes: Dict[UUID, SyncOutcome] = {}
        for account, result in zip(accounts, results):
            if isinstance(result, BaseException):
                self._logger.error(f"[{account.email}] Sync raised unexpectedly: {result}")
                outcomes[account.id] = SyncOutcome(errors=[f"Sync failed: {result}"], aborted=True)
            else:
                outcomes[account.id] = result
        return outcomes

    async def _run_pass(self, account: MailboxAccount, state: _PassState, outcome: SyncOutcome) -> None:
        loop = asyncio.get_running_loop()
        raw_messages: List[RawMessage] = await loop.run_in_executor(
            self._executor,
            self._fetch,
            account,
        )

        total = len(raw_messages)
        self._logger.info(f"[{account.email}] Fetched {total} message(s)")

        created: List[Email] = []
        for index, raw in enumerate(raw_messages, start=1):
            if state.superseded:
                outcome.errors.append("Sync lease was taken over by another pass, stopping")
                return

            try:
                result = self._ingester.ingest(account, raw)
            except Exception as e:
                outcome.skipped += 1
                outcome.errors.append(f"Failed to ingest {raw.message_id or raw.uid}: {e}")
                self._logger.error(
                    f"[{account.email}] Failed to ingest {raw.message_id or raw.uid}: {e}"
                )
                continue

            outcome.errors.extend(result.errors)
            if result.created:
                outcome.synced += 1
                created.append(result.email)
            else:
                outcome.existing += 1

            if index % self.PROGRESS_UPDATE_EVERY == 0 and index < total:
                self._report_progress(account, state, index, total)

            # 让出事件循环，续租任务得以运行
            await asyncio.sleep(0)

        await self._apply_rules(account, created, outcome)

    def _fetch(self, account: MailboxAccount) -> List[RawMessage]:
        return list(self._fetcher.fetch_since(account, account.sync_cursor))

    async def _apply_rules(self, account: MailboxAccount, emails: List[Email], outcome: SyncOutcome) -> None:
        if self._rule_engine is None or not emails:
            return

        for email in emails:
            try:
                result = self._rule_engine.run_enabled_rules(account.user_id, [account.id], email)
                outcome.errors.extend(result.errors)
            except Exception as e:
                outcome.errors.append(f"Failed to apply rules to {email.message_id}: {e}")
                self._logger.error(f"[{account.email}] Failed to apply rules to {email.message_id}: {e}")
            await asyncio.sleep(0)

    def _report_progress(self, account: MailboxAccount, state: _PassState, index: int, total: int) -> None:
        progress = min(99, index * 100 // total)
        status = f"Syncing {index}/{total} emails"
        if not self._accounts.update_sync_progress(account.id, state.lease.token, progress, status):
            state.superseded = True
            self._logger.warning(f"[{account.email}] Lease superseded while reporting progress")

    async def _keep_lease_alive(self, account: MailboxAccount, state: _PassState) -> None:
        while not state.superseded:
            await asyncio.sleep(self._renew_interval)
            renewed = state.lease.renewed(self._clock(), self._lease_horizon)
            if self._accounts.renew_lease(account.id, renewed):
                state.lease = renewed
                self._logger.debug(f"[{account.email}] Lease renewed until {renewed.expires_at}")
            else:
                state.superseded = True
                self._logger.warning(f"[{account.email}] Lease superseded, renewal rejected")

    async def _stop_renewer(self, account: MailboxAccount, renewer: asyncio.Task) -> None:
        renewer.cancel()
        try:
            await renewer
        except asyncio.CancelledError:
            pass
        except Exception as e:
            self._logger.error(f"[{account.email}] Lease renewal failed: {e}")

    def _finish(
        self,
        account: MailboxAccount,
        state: _PassState,
        outcome: SyncOutcome,
        started_at: datetime,
        failure: Optional[str],
    ) -> str:
        if failure is None:
            progress: Optional[int] = 100
            status = f"Synced {outcome.synced} emails"
            cursor: Optional[datetime] = started_at
        else:
            progress = None
            status = f"Sync failed: {failure}"
            cursor = None

        released = self._accounts.release_lease(
            account.id,
            state.lease.token,
            finished_at=self._clock(),
            progress=progress,
            status=status,
            cursor=cursor,
        )
        if not released:
            self._logger.warning(f"[{account.email}] Lease superseded, final state not written")

        self._logger.info(
            f"[{account.email}] Sync finished: {outcome.synced} synced, "
            f"{outcome.skipped} skipped, {len(outcome.errors)} error(s)"
        )

        return status

    def _recalculate_usage(self, account: MailboxAccount) -> None:
        try:
            self._usage.recalculate(account.user_id)
        except Exception as e:
            self._logger.error(f"[{account.email}] Failed to recalculate usage: {e}")

    async def _publish(
        self,
        account: MailboxAccount,
        update_type: MailboxUpdateType,
        synced: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        if self._publisher is None:
            return
        event = MailboxUpdated(
            aggregate_id=account.id,
            user_id=account.user_id,
            update_type=update_type,
            synced=synced,
            message=message,
        )
        # 推送实现可能阻塞重试，放到线程池执行
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._publisher.publish, event)
        except Exception as e:
            self._logger.warning(f"[{account.email}] Failed to publish {update_type.value}: {e}")
