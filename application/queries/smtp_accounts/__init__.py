"""SMTP 账号查询模块"""

from application.queries.smtp_accounts.list_smtp_accounts import (
    ListSmtpAccountsQuery,
    ListSmtpAccountsResult,
    SmtpAccountItem,
)

__all__ = ["ListSmtpAccountsQuery", "ListSmtpAccountsResult", "SmtpAccountItem"]
