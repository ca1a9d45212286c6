"""查询邮件列表处理器"""

import logging
from datetime import timedelta
from typing import List, Optional

from application.mail.services.background_sync_service import BackgroundSyncService
from application.queries.mail.list_emails import EmailItem, ListEmailsQuery, ListEmailsResult
from domain.common.base_entity import utc_now
from domain.mail.entities.email import Email
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.value_objects.email_folder import EmailFolder
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository


def _to_item(email: Email) -> EmailItem:
    return EmailItem(
        id=str(email.id),
        account_id=str(email.account_id),
        message_id=email.message_id,
        folder=email.folder.value,
        from_address=email.from_address,
        from_name=email.from_name,
        to_addresses=list(email.to_addresses),
        subject=email.subject,
        received_at=email.received_at.isoformat(),
        is_read=email.is_read,
        is_starred=email.is_starred,
        is_draft=email.is_draft,
        thread_id=email.thread_id,
        tag_ids=[str(t) for t in email.tag_ids],
    )


class ListEmailsHandler:
    """
    查询邮件列表处理器

    读取时顺带检查调用者的账号是否过期，过期的提交给后台同步服务。
    提交立即返回，同步失败不会影响这次读取。
    """

    def __init__(
        self,
        account_repository: MailboxAccountRepository,
        email_repository: EmailRepository,
        background_sync: Optional[BackgroundSyncService] = None,
        stale_threshold_seconds: float = 120,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化处理器

        Args:
            account_repository: 邮箱账号仓储
            email_repository: 邮件仓储
            background_sync: 后台同步服务，None 表示读取不触发同步
            stale_threshold_seconds: 距上次同步超过该秒数即触发
            logger: 可选的日志记录器
        """
        self._accounts = account_repository
        self._emails = email_repository
        self._background_sync = background_sync
        self._stale_threshold = timedelta(seconds=stale_threshold_seconds)
        self._logger = logger or logging.getLogger(__name__)

    async def handle(self, query: ListEmailsQuery) -> ListEmailsResult:
        """
        处理查询请求

        Args:
            query: 查询参数

        Returns:
            ListEmailsResult: 查询结果
        """
        limit = max(1, min(200, query.limit))
        offset = max(0, query.offset)

        folder: Optional[EmailFolder] = None
        if query.folder:
            try:
                folder = EmailFolder(query.folder.upper())
            except ValueError:
                valid = ", ".join(f.value for f in EmailFolder)
                return ListEmailsResult(
                    success=False,
                    message=f"Invalid folder: {query.folder}. Valid values: {valid}",
                    error_code="INVALID_FOLDER",
                )

        accounts = self._accounts.list_by_user(query.user_id)
        if query.account_id is not None:
            accounts = [a for a in accounts if str(a.id) == query.account_id]
            if not accounts:
                return ListEmailsResult(
                    success=False,
                    message=f"Mailbox account with ID '{query.account_id}' not found",
                    error_code="ACCOUNT_NOT_FOUND",
                )

        triggered = self._trigger_stale(accounts)

        account_ids = [a.id for a in accounts]
        if not account_ids:
            return ListEmailsResult(success=True, sync_triggered=triggered)

        emails, total = self._emails.list_filtered(
            account_ids=account_ids,
            folder=folder,
            is_read=query.is_read,
            is_starred=query.is_starred,
            limit=limit,
            offset=offset,
        )

        return ListEmailsResult(
            success=True,
            data=[_to_item(e) for e in emails],
            total=total,
            sync_triggered=triggered,
        )

    def _trigger_stale(self, accounts: List[MailboxAccount]) -> int:
        if self._background_sync is None or not self._background_sync.is_running:
            return 0

        now = utc_now()
        triggered = 0
        for account in accounts:
            if not account.is_due_for_sync(now, self._stale_threshold):
                continue
            try:
                if self._background_sync.submit(account):
                    triggered += 1
            except Exception as e:
                self._logger.warning(f"[{account.email}] Failed to submit background sync: {e}")
        return triggered
