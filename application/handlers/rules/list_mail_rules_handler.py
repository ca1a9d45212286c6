"""查询邮件规则 Handler"""

from typing import Optional
from uuid import UUID

from application.queries.rules.list_mail_rules import (
    GetMailRuleQuery,
    ListMailRulesQuery,
    MailRuleItem,
    MailRulesResult,
)
from domain.rules.entities.mail_rule import MailRule
from domain.rules.repositories.mail_rule_repository import MailRuleRepository


def to_rule_item(rule: MailRule) -> MailRuleItem:
    return MailRuleItem(
        id=str(rule.id),
        name=rule.name,
        description=rule.description,
        account_id=str(rule.account_id) if rule.account_id else None,
        conditions=rule.conditions.to_dict(),
        actions=rule.actions.to_dict(),
        is_enabled=rule.is_enabled,
        priority=rule.priority,
        stop_processing=rule.stop_processing,
        created_at=rule.created_at.isoformat(),
        updated_at=(rule.updated_at or rule.created_at).isoformat(),
    )


class ListMailRulesHandler:
    """查询规则列表（纯读取）"""

    def __init__(self, rule_repository: MailRuleRepository):
        self._rules = rule_repository

    def handle(self, query: ListMailRulesQuery) -> MailRulesResult:
        rules = self._rules.list_by_user(query.user_id)
        return MailRulesResult(success=True, data=[to_rule_item(r) for r in rules])


class GetMailRuleHandler:
    """查询单条规则（纯读取）"""

    def __init__(self, rule_repository: MailRuleRepository):
        self._rules = rule_repository

    def handle(self, query: GetMailRuleQuery) -> MailRulesResult:
        try:
            rule_uuid: Optional[UUID] = UUID(query.rule_id)
        except ValueError:
            rule_uuid = None

        rule = self._rules.get_by_id_for_user(rule_uuid, query.user_id) if rule_uuid else None
        if rule is None:
            return MailRulesResult(
                success=False,
                message=f"Mail rule with ID '{query.rule_id}' not found",
                error_code="RULE_NOT_FOUND",
            )
        return MailRulesResult(success=True, data=[to_rule_item(rule)])
