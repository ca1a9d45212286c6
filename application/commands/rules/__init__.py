"""邮件规则命令模块"""

from application.commands.rules.create_mail_rule import (
    CreateMailRuleCommand,
    CreateMailRuleResult,
    CreateMailRuleHandler,
)
from application.commands.rules.update_mail_rule import (
    UpdateMailRuleCommand,
    UpdateMailRuleResult,
    UpdateMailRuleHandler,
)
from application.commands.rules.delete_mail_rule import (
    DeleteMailRuleCommand,
    DeleteMailRuleResult,
    DeleteMailRuleHandler,
)
from application.commands.rules.run_mail_rule import (
    RunMailRuleCommand,
    RunMailRuleResult,
    RunMailRuleHandler,
)

__all__ = [
    "CreateMailRuleCommand",
    "CreateMailRuleResult",
    "CreateMailRuleHandler",
    "UpdateMailRuleCommand",
    "UpdateMailRuleResult",
    "UpdateMailRuleHandler",
    "DeleteMailRuleCommand",
    "DeleteMailRuleResult",
    "DeleteMailRuleHandler",
    "RunMailRuleCommand",
    "RunMailRuleResult",
    "RunMailRuleHandler",
]
