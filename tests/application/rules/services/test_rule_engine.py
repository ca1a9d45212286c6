"""RuleEngine 单元测试"""

import pytest
from dataclasses import replace
from unittest.mock import Mock
from uuid import uuid4

from application.mail.services.email_trash_service import EmailTrashService, TrashOutcome
from application.rules.services.rule_engine import FORWARD_SEPARATOR, RuleEngine, build_forward_message
from domain.common.exceptions import MailSendError
from domain.mail.entities.email import Email
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.repositories.tag_repository import TagRepository
from domain.mail.services.outbound_mail_sender import OutboundMailSender, SendResult, SmtpProfile, SmtpProfileProvider
from domain.mail.value_objects.email_folder import EmailFolder
from domain.rules.entities.mail_rule import MailRule
from domain.rules.repositories.mail_rule_repository import MailRuleRepository
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions


ACCOUNT_ID = uuid4()
PROFILE = SmtpProfile(
    host="smtp.example.com",
    port=587,
    username="relay",
    password="secret",
    from_address="relay@example.com",
)


def make_email(subject: str, account_id=ACCOUNT_ID, **kwargs) -> Email:
    return Email(
        account_id=account_id,
        message_id=f"<{uuid4()}@example.com>",
        from_address="billing@vendor.com",
        to_addresses=["me@example.com"],
        subject=subject,
        **kwargs,
    )


def make_rule(conditions=None, actions=None, **kwargs) -> MailRule:
    return MailRule.create(
        user_id="user-1",
        name=kwargs.pop("name", "rule"),
        conditions=RuleConditions.from_dict(conditions if conditions is not None else {"subjectContains": "invoice"}),
        actions=actions or RuleActions(archive=True),
        **kwargs,
    )


@pytest.fixture
def mailbox():
    """账号内的邮件"""
    return [
        make_email("Invoice #1"),
        make_email("Lunch?"),
        make_email("INVOICE #2"),
    ]


def matching(mailbox, account_ids, conditions):
    return [e for e in mailbox if e.account_id in account_ids and conditions.matches(e)]


@pytest.fixture
def mock_email_repository(mailbox):
    """模拟邮件仓储，条件查询按内存中的邮件计算"""
    repo = Mock(spec=EmailRepository)
    repo.count_matching.side_effect = lambda account_ids, conditions: len(matching(mailbox, account_ids, conditions))
    repo.list_matching_ids.side_effect = lambda account_ids, conditions: [
        e.id for e in matching(mailbox, account_ids, conditions)
    ]
    repo.list_by_ids.side_effect = lambda email_ids, account_ids: [
        e for e in mailbox if e.id in email_ids and e.account_id in account_ids
    ]
    repo.get_by_id.side_effect = lambda email_id: next((e for e in mailbox if e.id == email_id), None)
    return repo


@pytest.fixture
def mock_rule_repository():
    repo = Mock(spec=MailRuleRepository)
    repo.list_enabled_for_account.return_value = []
    return repo


@pytest.fixture
def mock_tag_repository():
    return Mock(spec=TagRepository)


@pytest.fixture
def mock_trash_service():
    service = Mock(spec=EmailTrashService)
    service.delete.return_value = TrashOutcome(moved=1)
    return service


@pytest.fixture
def mock_sender():
    sender = Mock(spec=OutboundMailSender)
    sender.send.return_value = SendResult(message_id="<fwd@example.com>")
    return sender


@pytest.fixture
def mock_profiles():
    provider = Mock(spec=SmtpProfileProvider)
    provider.get_default.return_value = PROFILE
    return provider


@pytest.fixture
def engine(mock_email_repository, mock_rule_repository, mock_tag_repository, mock_trash_service, mock_sender, mock_profiles):
    return RuleEngine(
        email_repository=mock_email_repository,
        mail_rule_repository=mock_rule_repository,
        tag_repository=mock_tag_repository,
        trash_service=mock_trash_service,
        mail_sender=mock_sender,
        smtp_profiles=mock_profiles,
        batch_size=2,
    )


class TestRuleEngineMatching:
    """匹配与预览"""

    def test_preview_counts_matching_emails(self, engine):
        assert engine.count_matching(make_rule(), [ACCOUNT_ID]) == 2

    def test_preview_and_apply_agree(self, engine, mock_email_repository):
        """测试预览数量与执行时的匹配数量一致"""
        rule = make_rule()

        preview = engine.count_matching(rule, [ACCOUNT_ID])
        applied = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        assert applied.matched_count == preview
        assert applied.processed_count == preview

    def test_preview_does_not_modify(self, engine, mock_email_repository):
        engine.count_matching(make_rule(), [ACCOUNT_ID])

        mock_email_repository.move_to_folder.assert_not_called()
        mock_email_repository.mark_read.assert_not_called()

    def test_empty_conditions_match_nothing(self, engine, mock_email_repository):
        rule = make_rule(conditions={})

        assert engine.count_matching(rule, [ACCOUNT_ID]) == 0
        mock_email_repository.count_matching.assert_not_called()

    def test_conditions_are_combined_with_and(self, engine):
        rule = make_rule(conditions={"subjectContains": "invoice", "fromContains": "someone-else"})

        assert engine.count_matching(rule, [ACCOUNT_ID]) == 0

    def test_rule_scoped_to_foreign_account_matches_nothing(self, engine):
        """测试规则限定的账号不在授权范围内时不匹配"""
        rule = make_rule(account_id=uuid4())

        assert engine.count_matching(rule, [ACCOUNT_ID]) == 0

    def test_preview_passes_scope_and_conditions_to_repository(self, engine, mock_email_repository):
        """测试预览把授权范围和条件整体交给仓储查询"""
        other = uuid4()
        rule = make_rule()

        engine.count_matching(rule, [ACCOUNT_ID, other])

        mock_email_repository.count_matching.assert_called_once_with([ACCOUNT_ID, other], rule.conditions)

    def test_resolve_scope(self):
        other = uuid4()

        assert RuleEngine.resolve_scope(make_rule(), [ACCOUNT_ID, other, ACCOUNT_ID]) == [ACCOUNT_ID, other]
        assert RuleEngine.resolve_scope(make_rule(account_id=other), [ACCOUNT_ID, other]) == [other]


class TestRuleEngineActions:
    """动作执行"""

    def test_archive_matching_emails(self, engine, mailbox, mock_email_repository):
        result = engine.apply_rule(make_rule(), [ACCOUNT_ID], "user-1")

        assert result.errors == []
        mock_email_repository.move_to_folder.assert_called_once_with(
            [mailbox[0].id, mailbox[2].id], EmailFolder.ARCHIVE
        )

    def test_delete_takes_precedence_over_archive(self, engine, mock_email_repository, mock_trash_service):
        rule = make_rule(actions=RuleActions(archive=True, delete=True))

        engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        mock_trash_service.delete.assert_called_once()
        mock_email_repository.move_to_folder.assert_not_called()

    def test_delete_uses_emails_from_matched_ids(self, engine, mailbox, mock_email_repository, mock_trash_service):
        engine.apply_rule(make_rule(actions=RuleActions(delete=True)), [ACCOUNT_ID], "user-1")

        mock_trash_service.delete.assert_called_once_with([mailbox[0], mailbox[2]])

    def test_flag_actions_do_not_load_emails(self, engine, mock_email_repository):
        """测试只改标志的规则直接按 ID 批量更新"""
        engine.apply_rule(make_rule(actions=RuleActions(mark_read=True)), [ACCOUNT_ID], "user-1")

        mock_email_repository.list_by_ids.assert_not_called()

    def test_actions_run_in_batches(self, engine, mailbox, mock_email_repository):
        """测试匹配 ID 一次读出后按批执行"""
        mailbox.append(make_email("invoice #3"))
        rule = make_rule(actions=RuleActions(mark_read=True))

        result = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        assert result.matched_count == 3
        mock_email_repository.list_matching_ids.assert_called_once()
        assert [c.args[0] for c in mock_email_repository.mark_read.call_args_list] == [
            [mailbox[0].id, mailbox[2].id],
            [mailbox[3].id],
        ]

    def test_mark_read_and_star(self, engine, mock_email_repository):
        engine.apply_rule(make_rule(actions=RuleActions(mark_read=True, star=True)), [ACCOUNT_ID], "user-1")

        mock_email_repository.mark_read.assert_called_once()
        mock_email_repository.star.assert_called_once()

    def test_foreign_tags_are_skipped(self, engine, mailbox, mock_email_repository, mock_tag_repository):
        """测试不属于用户的标签被跳过并报告"""
        owned, foreign = uuid4(), uuid4()
        mock_tag_repository.filter_owned.return_value = [owned]
        rule = make_rule(actions=RuleActions(add_tag_ids=(owned, foreign)))

        result = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        mock_email_repository.add_tags.assert_called_once_with([mailbox[0].id, mailbox[2].id], [owned])
        assert result.errors == ["Rule 'rule': skipped 1 tag(s) not owned by user"]

    def test_forward_sends_one_message_per_email(self, engine, mock_sender):
        rule = make_rule(actions=RuleActions(forward_to=("boss@example.com",)))

        result = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        assert result.errors == []
        assert mock_sender.send.call_count == 2
        profile, message = mock_sender.send.call_args.args
        assert profile is PROFILE
        assert message.to == ["boss@example.com"]
        assert message.subject == "Fwd: INVOICE #2"

    def test_forward_without_profile_is_skipped(self, engine, mock_sender, mock_profiles):
        mock_profiles.get_default.return_value = None
        rule = make_rule(actions=RuleActions(forward_to=("boss@example.com",), star=True))

        result = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        mock_sender.send.assert_not_called()
        assert result.processed_count == 2
        assert result.errors == ["Rule 'rule': forward skipped, no default SMTP profile configured"]

    def test_forward_failure_is_reported_per_email(self, engine, mock_sender):
        mock_sender.send.side_effect = [MailSendError("rejected"), SendResult(message_id="x")]
        rule = make_rule(actions=RuleActions(forward_to=("boss@example.com",)))

        result = engine.apply_rule(rule, [ACCOUNT_ID], "user-1")

        assert len(result.errors) == 1
        assert "rejected" in result.errors[0]


class TestRuleEngineEnabledRules:
    """新邮件的规则评估"""

    def test_rules_run_in_priority_order(self, engine, mailbox, mock_rule_repository):
        late = make_rule(name="b-late", priority=5, actions=RuleActions(star=True))
        early = make_rule(name="a-early", priority=1, actions=RuleActions(mark_read=True))
        mock_rule_repository.list_enabled_for_account.return_value = [late, early]

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], mailbox[0])

        assert result.matched_rule_ids == [early.id, late.id]

    def test_name_breaks_priority_ties(self, engine, mailbox, mock_rule_repository):
        second = make_rule(name="zeta", actions=RuleActions(star=True))
        first = make_rule(name="alpha", actions=RuleActions(star=True))
        mock_rule_repository.list_enabled_for_account.return_value = [second, first]

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], mailbox[0])

        assert result.matched_rule_ids == [first.id, second.id]

    def test_stop_processing_halts_evaluation(self, engine, mailbox, mock_rule_repository):
        """测试命中 stop_processing 规则后不再评估后续规则"""
        stopper = make_rule(name="stopper", priority=0, stop_processing=True, actions=RuleActions(star=True))
        after = make_rule(name="after", priority=1, actions=RuleActions(archive=True))
        mock_rule_repository.list_enabled_for_account.return_value = [after, stopper]

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], mailbox[0])

        assert result.matched_rule_ids == [stopper.id]

    def test_non_matching_stopper_does_not_halt(self, engine, mailbox, mock_rule_repository):
        stopper = make_rule(
            name="stopper", priority=0, stop_processing=True,
            conditions={"subjectContains": "lunch"}, actions=RuleActions(star=True),
        )
        after = make_rule(name="after", priority=1, actions=RuleActions(archive=True))
        mock_rule_repository.list_enabled_for_account.return_value = [stopper, after]

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], mailbox[0])

        assert result.matched_rule_ids == [after.id]

    def test_later_delete_rule_does_not_destroy_trashed_email(
        self, engine, mailbox, mock_rule_repository, mock_email_repository, mock_trash_service
    ):
        """测试两条 delete 规则先后命中同一封新邮件时只移入回收站"""
        original = mailbox[0]
        first = make_rule(name="a-delete", actions=RuleActions(delete=True))
        second = make_rule(name="b-delete", actions=RuleActions(delete=True))
        mock_rule_repository.list_enabled_for_account.return_value = [first, second]
        mock_email_repository.get_by_id.side_effect = lambda email_id: replace(original, folder=EmailFolder.TRASH)

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], original)

        assert result.matched_rule_ids == [first.id, second.id]
        folders = [c.args[0][0].folder for c in mock_trash_service.delete.call_args_list]
        assert folders == [EmailFolder.INBOX, EmailFolder.INBOX]

    def test_delete_of_email_already_in_trash_destroys_it(
        self, engine, mock_rule_repository, mock_email_repository, mock_trash_service
    ):
        email = make_email("Invoice", folder=EmailFolder.TRASH)
        rule = make_rule(actions=RuleActions(delete=True))
        mock_rule_repository.list_enabled_for_account.return_value = [rule]

        engine.run_enabled_rules("user-1", [ACCOUNT_ID], email)

        mock_trash_service.delete.assert_called_once_with([email])

    def test_unauthorized_account_is_ignored(self, engine, mock_rule_repository):
        email = make_email("Invoice", account_id=uuid4())

        result = engine.run_enabled_rules("user-1", [ACCOUNT_ID], email)

        assert result.matched_rule_ids == []
        mock_rule_repository.list_enabled_for_account.assert_not_called()


class TestBuildForwardMessage:

    def test_forward_body_contains_original_headers(self):
        email = make_email("Invoice #1", body_text="Amount due", body_html="<p>Amount due</p>", from_name="Vendor")

        message = build_forward_message(email, ["boss@example.com"])

        assert message.subject == "Fwd: Invoice #1"
        assert message.text.startswith(FORWARD_SEPARATOR)
        assert "From: Vendor <billing@vendor.com>" in message.text
        assert message.text.endswith("Amount due")
        assert message.html.endswith("<p>Amount due</p>")
        assert "&lt;billing@vendor.com&gt;" in message.html
