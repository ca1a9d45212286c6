"""查询邮箱账号列表处理器"""

from application.queries.mailbox.list_mailbox_accounts import (
    ListMailboxAccountsQuery,
    ListMailboxAccountsResult,
    MailboxAccountItem,
)
from domain.common.base_entity import utc_now
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository


class ListMailboxAccountsHandler:
    """
    查询邮箱账号列表处理器

    返回调用者的全部账号及其同步状态，不包含密码。
    """

    def __init__(self, repository: MailboxAccountRepository):
        self._repository = repository

    async def handle(self, query: ListMailboxAccountsQuery) -> ListMailboxAccountsResult:
        now = utc_now()
        accounts = self._repository.list_by_user(query.user_id)

        items = [
            MailboxAccountItem(
                id=str(account.id),
                name=account.name,
                email=account.email,
                username=account.username,
                imap_server=account.imap_config.server if account.imap_config else "",
                imap_port=account.imap_config.port if account.imap_config else 993,
                use_ssl=account.imap_config.use_ssl if account.imap_config else True,
                is_syncing=account.is_sync_in_progress(now),
                sync_progress=account.sync_progress,
                sync_status=account.sync_status,
                last_synced_at=account.last_synced_at.isoformat() if account.last_synced_at else None,
                created_at=account.created_at.isoformat() if account.created_at else "",
            )
            for account in accounts
        ]

        return ListMailboxAccountsResult(success=True, data=items, total=len(items))
