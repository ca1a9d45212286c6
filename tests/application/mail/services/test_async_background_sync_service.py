"""AsyncBackgroundSyncService 单元测试"""

import pytest
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

from application.mail.services.async_background_sync_service import AsyncBackgroundSyncService
from application.mail.services.sync_coordinator import SyncCoordinator, SyncOutcome
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.usage.services.billing_gate import BillingCheck, BillingGate


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_account_repository():
    repo = Mock(spec=MailboxAccountRepository)
    repo.list_due_for_sync.return_value = []
    return repo


@pytest.fixture
def mock_coordinator():
    coordinator = Mock(spec=SyncCoordinator)
    coordinator.start_sync = AsyncMock(return_value=SyncOutcome(synced=1))
    return coordinator


@pytest.fixture
def mock_billing_gate():
    gate = Mock(spec=BillingGate)
    gate.can_sync.return_value = BillingCheck(allowed=True)
    return gate


@pytest.fixture
def service(mock_account_repository, mock_coordinator, mock_billing_gate):
    """创建后台同步服务（扫描间隔足够长，测试只观察首轮）"""
    return AsyncBackgroundSyncService(
        account_repository=lambda: mock_account_repository,
        sync_coordinator=lambda: mock_coordinator,
        billing_gate=mock_billing_gate,
        interval=3600,
        stale_after=840,
        max_concurrent=2,
        queue_size=10,
        sync_timeout=5,
        clock=lambda: NOW,
    )


def make_account():
    account = Mock()
    account.id = uuid4()
    account.user_id = "user-1"
    account.email = f"{account.id}@example.com"
    return account


class TestAsyncBackgroundSyncServiceLifecycle:
    """生命周期测试"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, service):
        assert not service.is_running

        await service.start()
        assert service.is_running

        await service.stop()
        assert not service.is_running

    @pytest.mark.asyncio
    async def test_start_runs_first_cycle_immediately(
        self, service, mock_account_repository, mock_coordinator
    ):
        """测试启动后立即扫描一次，使用过期分界查询"""
        account = make_account()
        mock_account_repository.list_due_for_sync.return_value = [account]

        await service.start()
        await asyncio.sleep(0.05)
        await service.stop()

        mock_account_repository.list_due_for_sync.assert_called_once_with(
            cutoff=NOW - timedelta(seconds=840),
            now=NOW,
            limit=10,
        )
        mock_coordinator.start_sync.assert_awaited_once_with(account.id)

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self, service):
        await service.start()
        task = service._task

        await service.start()

        assert service._task is task
        await service.stop()


class TestAsyncBackgroundSyncServiceSubmit:
    """读路径提交"""

    @pytest.mark.asyncio
    async def test_submit_when_not_running_is_rejected(self, service):
        assert service.submit(make_account()) is False

    @pytest.mark.asyncio
    async def test_duplicate_submit_is_coalesced(self, service, mock_coordinator):
        """测试同一账号排队期间重复提交合并为一次"""
        release = asyncio.Event()

        async def slow_sync(account_id):
            await release.wait()
            return SyncOutcome(synced=1)

        mock_coordinator.start_sync = AsyncMock(side_effect=slow_sync)
        account = make_account()

        await service.start()
        assert service.submit(account) is True
        assert service.submit(account) is False
        assert service.pending_count == 1

        release.set()
        await asyncio.sleep(0.05)

        assert service.pending_count == 0
        mock_coordinator.start_sync.assert_awaited_once_with(account.id)
        await service.stop()

    @pytest.mark.asyncio
    async def test_full_queue_rejects_submit(self, mock_account_repository, mock_coordinator, mock_billing_gate):
        release = asyncio.Event()

        async def slow_sync(account_id):
            await release.wait()
            return SyncOutcome()

        mock_coordinator.start_sync = AsyncMock(side_effect=slow_sync)
        service = AsyncBackgroundSyncService(
            account_repository=mock_account_repository,
            sync_coordinator=lambda: mock_coordinator,
            billing_gate=mock_billing_gate,
            interval=3600,
            queue_size=1,
        )

        await service.start()
        assert service.submit(make_account()) is True
        assert service.submit(make_account()) is False

        release.set()
        await service.stop()


class TestAsyncBackgroundSyncServiceCycle:
    """扫描周期"""

    @pytest.mark.asyncio
    async def test_cycle_counts_aborted_syncs_as_errors(
        self, service, mock_account_repository, mock_coordinator
    ):
        mock_coordinator.start_sync = AsyncMock(
            side_effect=[SyncOutcome(synced=3), SyncOutcome(errors=["Sync failed: timeout"], aborted=True)]
        )

        await service.start()
        await asyncio.sleep(0.01)
        mock_account_repository.list_due_for_sync.return_value = [make_account(), make_account()]

        result = await service.run_cycle()
        await service.stop()

        assert result.checked == 2
        assert result.started == 2
        assert result.errors == 1

    @pytest.mark.asyncio
    async def test_billing_denial_skips_sync(
        self, service, mock_account_repository, mock_coordinator, mock_billing_gate
    ):
        """测试计费拒绝时不启动同步，也不算作错误"""
        mock_billing_gate.can_sync.return_value = BillingCheck(allowed=False, reason="Storage limit reached")

        await service.start()
        await asyncio.sleep(0.01)
        mock_account_repository.list_due_for_sync.return_value = [make_account()]

        result = await service.run_cycle()
        await service.stop()

        assert result.started == 1
        assert result.errors == 0
        mock_coordinator.start_sync.assert_not_called()

    @pytest.mark.asyncio
    async def test_repository_failure_returns_empty_cycle(self, service, mock_account_repository):
        mock_account_repository.list_due_for_sync.side_effect = RuntimeError("db down")

        result = await service.run_cycle()

        assert result.checked == 0
        assert result.started == 0

    @pytest.mark.asyncio
    async def test_timeout_counts_as_error(self, service, mock_account_repository, mock_coordinator):
        async def hang(account_id):
            await asyncio.sleep(10)

        mock_coordinator.start_sync = AsyncMock(side_effect=hang)
        service._timeout = 0.05

        await service.start()
        await asyncio.sleep(0.01)
        mock_account_repository.list_due_for_sync.return_value = [make_account()]

        result = await service.run_cycle()
        await service.stop()

        assert result.errors == 1
