"""邮箱处理器模块"""

from application.handlers.mailbox.add_mailbox_account_handler import (
    AddMailboxAccountHandler,
    AddMailboxAccountResult,
)
from application.handlers.mailbox.list_mailbox_accounts_handler import (
    ListMailboxAccountsHandler,
)
from application.handlers.mailbox.delete_mailbox_account_handler import (
    DeleteMailboxAccountHandler,
)
from application.handlers.mailbox.sync_mailbox_handler import (
    SyncAllMailboxesHandler,
    SyncMailboxHandler,
)
from application.handlers.mailbox.test_mailbox_connection_handler import (
    TestMailboxConnectionHandler,
)

__all__ = [
    "AddMailboxAccountHandler",
    "AddMailboxAccountResult",
    "ListMailboxAccountsHandler",
    "DeleteMailboxAccountHandler",
    "SyncAllMailboxesHandler",
    "SyncMailboxHandler",
    "TestMailboxConnectionHandler",
]
