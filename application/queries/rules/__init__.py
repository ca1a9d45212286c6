"""Mail rule queries package"""

from application.queries.rules.list_mail_rules import (
    GetMailRuleQuery,
    ListMailRulesQuery,
    MailRuleItem,
    MailRulesResult,
)
from application.queries.rules.preview_mail_rule import (
    PreviewMailRuleQuery,
    PreviewMailRuleResult,
)

__all__ = [
    "GetMailRuleQuery",
    "ListMailRulesQuery",
    "MailRuleItem",
    "MailRulesResult",
    "PreviewMailRuleQuery",
    "PreviewMailRuleResult",
]
