"""邮件规则查询处理器模块"""

from application.handlers.rules.list_mail_rules_handler import (
    GetMailRuleHandler,
    ListMailRulesHandler,
    to_rule_item,
)
from application.handlers.rules.preview_mail_rule_handler import PreviewMailRuleHandler

__all__ = [
    "GetMailRuleHandler",
    "ListMailRulesHandler",
    "PreviewMailRuleHandler",
    "to_rule_item",
]
