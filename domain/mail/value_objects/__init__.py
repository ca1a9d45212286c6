"""邮件值对象模块"""

from domain.mail.value_objects.email_content import EmailContent
from domain.mail.value_objects.email_folder import EmailFolder
from domain.mail.value_objects.raw_message import RawAttachment, RawMessage

__all__ = ["EmailContent", "EmailFolder", "RawAttachment", "RawMessage"]
