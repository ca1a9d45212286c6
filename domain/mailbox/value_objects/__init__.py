"""邮箱值对象模块"""

from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword
from domain.mailbox.value_objects.sync_lease import SyncLease

__all__ = [
    "ImapConfig",
    "EncryptedPassword",
    "SyncLease",
]
