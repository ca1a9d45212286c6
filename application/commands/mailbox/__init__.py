"""邮箱命令模块"""

from application.commands.mailbox.add_mailbox_account import AddMailboxAccountCommand
from application.commands.mailbox.delete_mailbox_account import (
    DeleteMailboxAccountCommand,
    DeleteMailboxAccountResult,
)
from application.commands.mailbox.sync_mailbox import (
    SyncAllMailboxesCommand,
    SyncAllMailboxesResult,
    SyncMailboxCommand,
    SyncMailboxResult,
)
from application.commands.mailbox.test_mailbox_connection import (
    TestMailboxConnectionCommand,
    TestMailboxConnectionResult,
)

__all__ = [
    "AddMailboxAccountCommand",
    "DeleteMailboxAccountCommand",
    "DeleteMailboxAccountResult",
    "SyncAllMailboxesCommand",
    "SyncAllMailboxesResult",
    "SyncMailboxCommand",
    "SyncMailboxResult",
    "TestMailboxConnectionCommand",
    "TestMailboxConnectionResult",
]
