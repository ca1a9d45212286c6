"""SqlAlchemyMailboxAccountRepository 集成测试

使用 SQLite 内存数据库测试仓储的实际行为，重点是租约的 compare-and-set 语义。
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from cryptography.fernet import Fernet
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from domain.common.exceptions import DuplicateEntityException
from domain.mail.entities.email import Email
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.sync_lease import SyncLease
from domain.rules.entities.mail_rule import MailRule
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions
from infrastructure.database.database_factory import DatabaseFactory
from infrastructure.mail.repositories.sqlalchemy_email_repository import SqlAlchemyEmailRepository
from infrastructure.mailbox.repositories.sqlalchemy_mailbox_account_repository import (
    SqlAlchemyMailboxAccountRepository,
)
from infrastructure.rules.repositories.sqlalchemy_mail_rule_repository import SqlAlchemyMailRuleRepository


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
HORIZON = timedelta(minutes=60)
ENCRYPTION_KEY = Fernet.generate_key()


@pytest.fixture
def engine():
    """创建 SQLite 内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    DatabaseFactory.create_schema(engine)
    return engine


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """创建数据库会话"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repository(session: Session) -> SqlAlchemyMailboxAccountRepository:
    """创建仓储实例"""
    return SqlAlchemyMailboxAccountRepository(session)


def make_account(email: str = "alice@example.com", user_id: str = "user-1") -> MailboxAccount:
    return MailboxAccount.create(
        user_id=user_id,
        email=email,
        imap_config=ImapConfig(server="imap.example.com", port=993),
        password="app-password",
        encryption_key=ENCRYPTION_KEY,
    )


class TestMailboxAccountRepositoryCrud:
    """基本增删查"""

    def test_add_and_get(self, repository):
        account = make_account()

        repository.add(account)
        loaded = repository.get_by_id(account.id)

        assert loaded is not None
        assert loaded.email == "alice@example.com"
        assert loaded.imap_config == ImapConfig(server="imap.example.com", port=993)
        assert loaded.get_decrypted_password(ENCRYPTION_KEY) == "app-password"
        assert loaded.sync_lease.is_empty
        assert loaded.created_at.tzinfo is not None

    def test_get_missing_returns_none(self, repository):
        assert repository.get_by_id(uuid4()) is None

    def test_duplicate_email_for_same_user_raises(self, repository):
        """测试同一用户重复添加同一邮箱"""
        repository.add(make_account())

        with pytest.raises(DuplicateEntityException):
            repository.add(make_account())

    def test_same_email_for_different_users_is_allowed(self, repository):
        repository.add(make_account(user_id="user-1"))
        repository.add(make_account(user_id="user-2"))

        assert repository.exists_for_user("user-2", "alice@example.com")

    def test_list_by_user(self, repository):
        a = make_account("a@example.com")
        b = make_account("b@example.com")
        other = make_account("c@example.com", user_id="user-2")
        for account in (a, b, other):
            repository.add(account)

        assert {x.email for x in repository.list_by_user("user-1")} == {"a@example.com", "b@example.com"}
        assert set(repository.list_ids_by_user("user-1")) == {a.id, b.id}
        assert repository.list_user_ids() == ["user-1", "user-2"]


class TestMailboxAccountRepositoryLease:
    """租约原语"""

    def test_acquire_on_free_account(self, repository):
        account = make_account()
        repository.add(account)
        lease = SyncLease.issue(NOW, HORIZON)

        assert repository.try_acquire_lease(account.id, lease, NOW, "Starting sync...") is True

        loaded = repository.get_by_id(account.id)
        assert loaded.sync_lease == lease
        assert loaded.sync_progress == 0
        assert loaded.sync_status == "Starting sync..."

    def test_second_acquire_fails_while_held(self, repository):
        """测试租约有效时第二个获取者失败"""
        account = make_account()
        repository.add(account)
        first = SyncLease.issue(NOW, HORIZON)
        repository.try_acquire_lease(account.id, first, NOW, "Starting sync...")

        second = SyncLease.issue(NOW + timedelta(minutes=1), HORIZON)
        acquired = repository.try_acquire_lease(account.id, second, NOW + timedelta(minutes=1), "Starting sync...")

        assert acquired is False
        assert repository.get_by_id(account.id).sync_lease.token == first.token

    def test_expired_lease_can_be_taken_over(self, repository):
        account = make_account()
        repository.add(account)
        repository.try_acquire_lease(account.id, SyncLease.issue(NOW, HORIZON), NOW, "Starting sync...")

        later = NOW + HORIZON
        takeover = SyncLease.issue(later, HORIZON)

        assert repository.try_acquire_lease(account.id, takeover, later, "Starting sync...") is True
        assert repository.get_by_id(account.id).sync_lease.token == takeover.token

    def test_concurrent_sessions_only_one_wins(self, session_factory):
        """测试两个会话同时获取租约时只有一个成功"""
        account = make_account()
        SqlAlchemyMailboxAccountRepository(session_factory()).add(account)

        repo_a = SqlAlchemyMailboxAccountRepository(session_factory())
        repo_b = SqlAlchemyMailboxAccountRepository(session_factory())

        results = [
            repo_a.try_acquire_lease(account.id, SyncLease.issue(NOW, HORIZON), NOW, "a"),
            repo_b.try_acquire_lease(account.id, SyncLease.issue(NOW, HORIZON), NOW, "b"),
        ]

        assert results == [True, False]

    def test_renew_requires_matching_token(self, repository):
        account = make_account()
        repository.add(account)
        lease = SyncLease.issue(NOW, HORIZON)
        repository.try_acquire_lease(account.id, lease, NOW, "Starting sync...")

        renewed = lease.renewed(NOW + timedelta(minutes=30), HORIZON)
        stranger = SyncLease.issue(NOW, HORIZON)

        assert repository.renew_lease(account.id, renewed) is True
        assert repository.renew_lease(account.id, stranger) is False
        assert repository.get_by_id(account.id).sync_lease.expires_at == renewed.expires_at

    def test_progress_requires_matching_token(self, repository):
        account = make_account()
        repository.add(account)
        lease = SyncLease.issue(NOW, HORIZON)
        repository.try_acquire_lease(account.id, lease, NOW, "Starting sync...")

        assert repository.update_sync_progress(account.id, lease.token, 40, "Syncing 4/10 emails") is True
        assert repository.update_sync_progress(account.id, "other", 90, "x") is False
        assert repository.get_by_id(account.id).sync_progress == 40

    def test_release_writes_final_state(self, repository):
        """测试释放租约后写入最终状态和检查点"""
        account = make_account()
        repository.add(account)
        lease = SyncLease.issue(NOW, HORIZON)
        repository.try_acquire_lease(account.id, lease, NOW, "Starting sync...")
        finished = NOW + timedelta(minutes=2)

        released = repository.release_lease(
            account.id, lease.token, finished_at=finished, progress=100, status="Synced 3 emails", cursor=NOW
        )

        assert released is True
        loaded = repository.get_by_id(account.id)
        assert loaded.sync_lease.is_empty
        assert loaded.last_synced_at == finished
        assert loaded.sync_cursor == NOW
        assert loaded.sync_progress == 100
        assert loaded.sync_status == "Synced 3 emails"

    def test_failed_release_keeps_cursor(self, repository):
        account = make_account()
        repository.add(account)
        lease = SyncLease.issue(NOW, HORIZON)
        repository.try_acquire_lease(account.id, lease, NOW, "Starting sync...")

        repository.release_lease(account.id, lease.token, finished_at=NOW, progress=None, status="Sync failed: x")

        loaded = repository.get_by_id(account.id)
        assert loaded.sync_cursor is None
        assert loaded.sync_progress is None
        assert loaded.sync_status == "Sync failed: x"

    def test_superseded_release_writes_nothing(self, repository):
        """测试被接管的同步无法写入最终状态"""
        account = make_account()
        repository.add(account)
        repository.try_acquire_lease(account.id, SyncLease.issue(NOW, HORIZON), NOW, "Starting sync...")

        released = repository.release_lease(account.id, "stale-token", finished_at=NOW, progress=100, status="done")

        assert released is False
        assert repository.get_by_id(account.id).last_synced_at is None


class TestMailboxAccountRepositoryDueForSync:
    """后台同步候选"""

    def test_never_synced_first_then_oldest(self, repository):
        never = make_account("never@example.com")
        old = make_account("old@example.com")
        older = make_account("older@example.com")
        fresh = make_account("fresh@example.com")
        for account in (old, older, fresh, never):
            repository.add(account)
        for account, synced_at in ((old, NOW - timedelta(hours=1)), (older, NOW - timedelta(hours=3)),
                                   (fresh, NOW - timedelta(minutes=1))):
            lease = SyncLease.issue(synced_at, HORIZON)
            repository.try_acquire_lease(account.id, lease, synced_at, "Starting sync...")
            repository.release_lease(account.id, lease.token, finished_at=synced_at, progress=100, status="ok")

        due = repository.list_due_for_sync(cutoff=NOW - timedelta(minutes=14), now=NOW)

        assert [a.email for a in due] == ["never@example.com", "older@example.com", "old@example.com"]

    def test_held_lease_is_excluded(self, repository):
        account = make_account()
        repository.add(account)
        repository.try_acquire_lease(account.id, SyncLease.issue(NOW, HORIZON), NOW, "Starting sync...")

        assert repository.list_due_for_sync(cutoff=NOW, now=NOW + timedelta(minutes=5)) == []
        assert len(repository.list_due_for_sync(cutoff=NOW, now=NOW + HORIZON)) == 1

    def test_limit(self, repository):
        for n in range(3):
            repository.add(make_account(f"{n}@example.com"))

        assert len(repository.list_due_for_sync(cutoff=NOW, now=NOW, limit=2)) == 2


class TestMailboxAccountRepositoryRemove:

    def test_remove_cascades(self, repository, session):
        """测试删除账号时级联删除邮件和账号范围的规则"""
        account = make_account()
        repository.add(account)
        emails = SqlAlchemyEmailRepository(session)
        email = Email(account_id=account.id, message_id="<m1@example.com>")
        emails.add(email)
        rules = SqlAlchemyMailRuleRepository(session)
        scoped = MailRule.create(
            user_id="user-1",
            name="scoped",
            conditions=RuleConditions.from_dict({"fromContains": "a"}),
            actions=RuleActions(star=True),
            account_id=account.id,
        )
        global_rule = MailRule.create(
            user_id="user-1",
            name="global",
            conditions=RuleConditions.from_dict({"fromContains": "a"}),
            actions=RuleActions(star=True),
        )
        rules.add(scoped)
        rules.add(global_rule)

        repository.remove(account)

        assert repository.get_by_id(account.id) is None
        assert emails.get_by_id(email.id) is None
        assert [r.name for r in rules.list_by_user("user-1")] == ["global"]
