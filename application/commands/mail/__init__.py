"""邮件命令模块"""

from application.commands.mail.delete_emails import DeleteEmailsCommand, DeleteEmailsResult

__all__ = ["DeleteEmailsCommand", "DeleteEmailsResult"]
