"""
邮箱账号界限上下文

- MailboxAccount 聚合根（连接参数、加密凭证、同步租约与进度）
- ImapConfig, EncryptedPassword, SyncLease 值对象
"""

from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword
from domain.mailbox.value_objects.sync_lease import SyncLease

__all__ = [
    "MailboxAccount",
    "ImapConfig",
    "EncryptedPassword",
    "SyncLease",
]
