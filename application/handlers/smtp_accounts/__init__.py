"""SMTP 账号查询处理器模块"""

from application.handlers.smtp_accounts.list_smtp_accounts_handler import ListSmtpAccountsHandler

__all__ = ["ListSmtpAccountsHandler"]
