"""邮件领域服务接口"""

from domain.mail.services.attachment_store import AttachmentStore, StoredAttachment
from domain.mail.services.outbound_mail_sender import (
    OutboundMailSender,
    OutboundMessage,
    SendResult,
    SmtpProfile,
    SmtpProfileProvider,
)
from domain.mail.services.mailbox_update_publisher import MailboxUpdatePublisher

__all__ = [
    "AttachmentStore",
    "StoredAttachment",
    "OutboundMailSender",
    "OutboundMessage",
    "SendResult",
    "SmtpProfile",
    "SmtpProfileProvider",
    "MailboxUpdatePublisher",
]
