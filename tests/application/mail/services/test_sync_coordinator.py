"""SyncCoordinator 单元测试"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock
from uuid import uuid4

from cryptography.fernet import Fernet

from application.mail.services.message_ingester import IngestResult, MessageIngester
from application.mail.services.sync_coordinator import SYNC_IN_PROGRESS, SyncCoordinator, SyncOutcome
from application.rules.services.rule_engine import RuleEngine, RuleRunResult
from domain.common.exceptions import MailboxConnectionError
from domain.mail.entities.email import Email
from domain.mail.events.mail_events import MailboxUpdateType
from domain.mail.services.mailbox_update_publisher import MailboxUpdatePublisher
from domain.mail.value_objects.raw_message import RawMessage
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.mailbox.services.mailbox_fetcher import MailboxFetcher
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.sync_lease import SyncLease
from domain.usage.services.usage_recalculator import UsageRecalculator


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def account() -> MailboxAccount:
    """创建测试用邮箱账号"""
    return MailboxAccount.create(
        user_id="user-1",
        email="alice@example.com",
        imap_config=ImapConfig(server="imap.example.com"),
        password="secret",
        encryption_key=Fernet.generate_key(),
    )


@pytest.fixture
def mock_account_repository(account):
    """模拟账号仓储，租约原语默认都成功"""
    repo = Mock(spec=MailboxAccountRepository)
    repo.get_by_id.return_value = account
    repo.try_acquire_lease.return_value = True
    repo.renew_lease.return_value = True
    repo.update_sync_progress.return_value = True
    repo.release_lease.return_value = True
    return repo


@pytest.fixture
def mock_fetcher():
    fetcher = Mock(spec=MailboxFetcher)
    fetcher.fetch_since.return_value = []
    return fetcher


@pytest.fixture
def mock_ingester():
    return Mock(spec=MessageIngester)


@pytest.fixture
def mock_usage():
    return Mock(spec=UsageRecalculator)


@pytest.fixture
def mock_publisher():
    return Mock(spec=MailboxUpdatePublisher)


@pytest.fixture
def coordinator(mock_account_repository, mock_fetcher, mock_ingester, mock_usage, mock_publisher):
    return SyncCoordinator(
        account_repository=mock_account_repository,
        mailbox_fetcher=mock_fetcher,
        message_ingester=mock_ingester,
        usage_recalculator=mock_usage,
        publisher=mock_publisher,
        clock=lambda: NOW,
    )


def make_raw(n: int) -> RawMessage:
    return RawMessage(uid=str(n), message_id=f"<m{n}@example.com>", subject=f"Mail {n}")


def make_email(account: MailboxAccount, n: int) -> Email:
    return Email(account_id=account.id, message_id=f"<m{n}@example.com>")


class TestSyncCoordinatorSingleFlight:
    """单账号互斥"""

    @pytest.mark.asyncio
    async def test_held_lease_returns_in_progress(self, coordinator, account, mock_account_repository, mock_fetcher):
        """测试租约有效时直接返回进行中，不收取"""
        account.sync_lease = SyncLease.issue(NOW - timedelta(minutes=5), timedelta(minutes=60))

        outcome = await coordinator.start_sync(account.id)

        assert outcome.errors == [SYNC_IN_PROGRESS]
        assert outcome.was_in_progress
        assert not outcome.is_total_failure
        mock_account_repository.try_acquire_lease.assert_not_called()
        mock_fetcher.fetch_since.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_lease_race_returns_in_progress(self, coordinator, account, mock_account_repository, mock_fetcher):
        """测试条件写入失败（另一轮抢先）同样返回进行中"""
        mock_account_repository.try_acquire_lease.return_value = False

        outcome = await coordinator.start_sync(account.id)

        assert outcome.was_in_progress
        mock_fetcher.fetch_since.assert_not_called()
        mock_account_repository.release_lease.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_lease_is_taken_over(self, coordinator, account, mock_account_repository):
        """测试过期租约可以被接管"""
        account.sync_lease = SyncLease.issue(NOW - timedelta(hours=2), timedelta(minutes=60))

        outcome = await coordinator.start_sync(account.id)

        assert outcome.errors == []
        mock_account_repository.try_acquire_lease.assert_called_once()
        lease = mock_account_repository.try_acquire_lease.call_args.args[1]
        assert lease.expires_at == NOW + timedelta(minutes=60)

    @pytest.mark.asyncio
    async def test_unknown_account(self, coordinator, mock_account_repository):
        mock_account_repository.get_by_id.return_value = None

        outcome = await coordinator.start_sync(uuid4())

        assert outcome.aborted
        assert outcome.errors[0].startswith("Mailbox account not found")


class TestSyncCoordinatorPass:
    """一轮同步"""

    @pytest.mark.asyncio
    async def test_counts_synced_and_skipped(
        self, coordinator, account, mock_account_repository, mock_fetcher, mock_ingester, mock_usage
    ):
        """测试单封失败计入 skipped，不影响其他邮件"""
        mock_fetcher.fetch_since.return_value = [make_raw(1), make_raw(2), make_raw(3)]
        mock_ingester.ingest.side_effect = [
            IngestResult(created=True, email=make_email(account, 1)),
            RuntimeError("disk full"),
            IngestResult(created=True, email=make_email(account, 3)),
        ]

        outcome = await coordinator.start_sync(account.id)

        assert outcome.synced == 2
        assert outcome.skipped == 1
        assert not outcome.aborted
        assert any("disk full" in e for e in outcome.errors)
        mock_usage.recalculate.assert_called_once_with("user-1")

    @pytest.mark.asyncio
    async def test_existing_messages_are_not_counted(self, coordinator, account, mock_fetcher, mock_ingester):
        mock_fetcher.fetch_since.return_value = [make_raw(1)]
        mock_ingester.ingest.return_value = IngestResult(created=False, email=make_email(account, 1))

        outcome = await coordinator.start_sync(account.id)

        assert outcome.synced == 0
        assert outcome.existing == 1
        assert outcome.skipped == 0
        assert outcome.errors == []
        assert not outcome.is_total_failure

    @pytest.mark.asyncio
    async def test_overlapping_refetch_with_one_bad_message_is_not_total_failure(
        self, coordinator, account, mock_fetcher, mock_ingester
    ):
        """测试重叠收取：三封已存在、一封入库失败，不算整体失败"""
        mock_fetcher.fetch_since.return_value = [make_raw(n) for n in range(1, 5)]
        mock_ingester.ingest.side_effect = [
            IngestResult(created=False, email=make_email(account, 1)),
            IngestResult(created=False, email=make_email(account, 2)),
            IngestResult(created=False, email=make_email(account, 3)),
            ValueError("malformed message"),
        ]

        outcome = await coordinator.start_sync(account.id)

        assert (outcome.synced, outcome.existing, outcome.skipped) == (0, 3, 1)
        assert not outcome.aborted
        assert not outcome.is_total_failure

    @pytest.mark.asyncio
    async def test_every_message_failing_is_total_failure(self, coordinator, account, mock_fetcher, mock_ingester):
        mock_fetcher.fetch_since.return_value = [make_raw(1), make_raw(2)]
        mock_ingester.ingest.side_effect = ValueError("malformed message")

        outcome = await coordinator.start_sync(account.id)

        assert outcome.skipped == 2
        assert not outcome.aborted
        assert outcome.is_total_failure

    @pytest.mark.asyncio
    async def test_fetch_starts_from_checkpoint(self, coordinator, account, mock_fetcher):
        account.sync_cursor = NOW - timedelta(days=1)

        await coordinator.start_sync(account.id)

        mock_fetcher.fetch_since.assert_called_once_with(account, NOW - timedelta(days=1))

    @pytest.mark.asyncio
    async def test_success_releases_lease_and_advances_cursor(
        self, coordinator, account, mock_account_repository, mock_fetcher, mock_ingester
    ):
        mock_fetcher.fetch_since.return_value = [make_raw(1)]
        mock_ingester.ingest.return_value = IngestResult(created=True, email=make_email(account, 1))

        await coordinator.start_sync(account.id)

        token = mock_account_repository.try_acquire_lease.call_args.args[1].token
        mock_account_repository.release_lease.assert_called_once_with(
            account.id,
            token,
            finished_at=NOW,
            progress=100,
            status="Synced 1 emails",
            cursor=NOW,
        )

    @pytest.mark.asyncio
    async def test_connection_failure_aborts_without_advancing_cursor(
        self, coordinator, account, mock_account_repository, mock_fetcher, mock_usage
    ):
        """测试连接失败中止本轮，释放租约但不推进检查点"""
        mock_fetcher.fetch_since.side_effect = MailboxConnectionError("Connection refused", "imap.example.com", 993)

        outcome = await coordinator.start_sync(account.id)

        assert outcome.aborted
        assert outcome.is_total_failure
        assert outcome.errors == ["Sync failed: Connection refused"]
        kwargs = mock_account_repository.release_lease.call_args.kwargs
        assert kwargs["cursor"] is None
        assert kwargs["progress"] is None
        assert kwargs["status"] == "Sync failed: Connection refused"
        mock_usage.recalculate.assert_called_once()

    @pytest.mark.asyncio
    async def test_progress_is_reported_periodically(
        self, coordinator, account, mock_account_repository, mock_fetcher, mock_ingester
    ):
        mock_fetcher.fetch_since.return_value = [make_raw(n) for n in range(25)]
        mock_ingester.ingest.side_effect = lambda acc, raw: IngestResult(
            created=True, email=make_email(account, int(raw.uid))
        )

        outcome = await coordinator.start_sync(account.id)

        assert outcome.synced == 25
        progress_values = [c.args[2] for c in mock_account_repository.update_sync_progress.call_args_list]
        assert progress_values == [40, 80]

    @pytest.mark.asyncio
    async def test_superseded_pass_stops_early(
        self, coordinator, account, mock_account_repository, mock_fetcher, mock_ingester
    ):
        """测试租约被接管后停止入库"""
        mock_fetcher.fetch_since.return_value = [make_raw(n) for n in range(25)]
        mock_ingester.ingest.side_effect = lambda acc, raw: IngestResult(
            created=True, email=make_email(account, int(raw.uid))
        )
        mock_account_repository.update_sync_progress.return_value = False

        outcome = await coordinator.start_sync(account.id)

        assert mock_ingester.ingest.call_count == 10
        assert outcome.synced == 10
        assert any("taken over" in e for e in outcome.errors)

    @pytest.mark.asyncio
    async def test_usage_failure_is_not_fatal(self, coordinator, account, mock_usage):
        mock_usage.recalculate.side_effect = RuntimeError("db locked")

        outcome = await coordinator.start_sync(account.id)

        assert outcome.errors == []


class TestSyncCoordinatorEvents:
    """同步事件推送"""

    @pytest.mark.asyncio
    async def test_publishes_started_and_completed(self, coordinator, account, mock_publisher):
        await coordinator.start_sync(account.id)

        events = [c.args[0] for c in mock_publisher.publish.call_args_list]
        assert [e.update_type for e in events] == [MailboxUpdateType.SYNC_STARTED, MailboxUpdateType.SYNC_COMPLETED]
        assert events[1].synced == 0
        assert events[1].user_id == "user-1"

    @pytest.mark.asyncio
    async def test_publishes_error_on_failure(self, coordinator, account, mock_fetcher, mock_publisher):
        mock_fetcher.fetch_since.side_effect = MailboxConnectionError("timeout")

        await coordinator.start_sync(account.id)

        last = mock_publisher.publish.call_args_list[-1].args[0]
        assert last.update_type == MailboxUpdateType.ERROR
        assert last.message == "Sync failed: timeout"

    @pytest.mark.asyncio
    async def test_publisher_failure_is_ignored(self, coordinator, account, mock_publisher):
        mock_publisher.publish.side_effect = RuntimeError("webhook down")

        outcome = await coordinator.start_sync(account.id)

        assert not outcome.aborted


class TestSyncCoordinatorRules:

    @pytest.mark.asyncio
    async def test_rules_run_on_new_emails_only(
        self, mock_account_repository, mock_fetcher, mock_ingester, mock_usage, account
    ):
        rule_engine = Mock(spec=RuleEngine)
        rule_engine.run_enabled_rules.return_value = RuleRunResult(errors=["forward skipped"])
        coordinator = SyncCoordinator(
            account_repository=mock_account_repository,
            mailbox_fetcher=mock_fetcher,
            message_ingester=mock_ingester,
            usage_recalculator=mock_usage,
            rule_engine=rule_engine,
            clock=lambda: NOW,
        )
        new_email = make_email(account, 1)
        mock_fetcher.fetch_since.return_value = [make_raw(1), make_raw(2)]
        mock_ingester.ingest.side_effect = [
            IngestResult(created=True, email=new_email),
            IngestResult(created=False, email=make_email(account, 2)),
        ]

        outcome = await coordinator.start_sync(account.id)

        rule_engine.run_enabled_rules.assert_called_once_with("user-1", [account.id], new_email)
        assert outcome.errors == ["forward skipped"]
        assert outcome.synced == 1


class TestSyncAll:

    @pytest.mark.asyncio
    async def test_sync_all_runs_every_account(self, coordinator, account, mock_account_repository):
        mock_account_repository.list_by_user.return_value = [account]

        results = await coordinator.sync_all("user-1")

        assert list(results) == [account.id]
        assert isinstance(results[account.id], SyncOutcome)

    @pytest.mark.asyncio
    async def test_sync_all_without_accounts(self, coordinator, mock_account_repository):
        mock_account_repository.list_by_user.return_value = []

        assert await coordinator.sync_all("user-1") == {}
