"""SMTP 账号命令模块"""

from application.commands.smtp_accounts.create_smtp_account import (
    CreateSmtpAccountCommand,
    CreateSmtpAccountResult,
    CreateSmtpAccountHandler,
)
from application.commands.smtp_accounts.manage_smtp_account import (
    SmtpAccountCommand,
    SmtpAccountResult,
    DeleteSmtpAccountHandler,
    SetDefaultSmtpAccountHandler,
)

__all__ = [
    "CreateSmtpAccountCommand",
    "CreateSmtpAccountResult",
    "CreateSmtpAccountHandler",
    "SmtpAccountCommand",
    "SmtpAccountResult",
    "DeleteSmtpAccountHandler",
    "SetDefaultSmtpAccountHandler",
]
