"""邮件处理器模块"""

from application.handlers.mail.delete_emails_handler import DeleteEmailsHandler
from application.handlers.mail.list_emails_handler import ListEmailsHandler

__all__ = ["DeleteEmailsHandler", "ListEmailsHandler"]
