"""预览邮件规则 Handler"""

from uuid import UUID

from application.queries.rules.preview_mail_rule import (
    PreviewMailRuleQuery,
    PreviewMailRuleResult,
)
from application.rules.services.rule_engine import RuleEngine
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.rules.repositories.mail_rule_repository import MailRuleRepository


class PreviewMailRuleHandler:
    """预览规则匹配数量

    与 RunMailRuleHandler 使用同一组翻译为 SQL 的条件，两者看到的邮件集合一致。
    这是一个纯读取操作，不修改任何状态。
    """

    def __init__(
        self,
        rule_repository: MailRuleRepository,
        account_repository: MailboxAccountRepository,
        rule_engine: RuleEngine,
    ):
        self._rules = rule_repository
        self._accounts = account_repository
        self._engine = rule_engine

    def handle(self, query: PreviewMailRuleQuery) -> PreviewMailRuleResult:
        """处理预览请求

        Args:
            query: 预览查询

        Returns:
            PreviewMailRuleResult，matched_count 为当前匹配的邮件数
        """
        try:
            rule_uuid = UUID(query.rule_id)
        except ValueError:
            rule_uuid = None

        rule = self._rules.get_by_id_for_user(rule_uuid, query.user_id) if rule_uuid else None
        if rule is None:
            return PreviewMailRuleResult(
                success=False,
                rule_id=query.rule_id,
                message=f"Mail rule with ID '{query.rule_id}' not found",
                error_code="RULE_NOT_FOUND",
            )

        account_ids = self._accounts.list_ids_by_user(query.user_id)
        count = self._engine.count_matching(rule, account_ids)

        return PreviewMailRuleResult(
            success=True,
            rule_id=query.rule_id,
            matched_count=count,
            message=f"Rule matches {count} email(s)",
        )
