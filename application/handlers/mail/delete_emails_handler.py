"""删除邮件处理器"""

import logging
from typing import List, Optional
from uuid import UUID

from application.commands.mail.delete_emails import DeleteEmailsCommand, DeleteEmailsResult
from application.mail.services.email_trash_service import EmailTrashService
from domain.mail.repositories.email_repository import EmailRepository
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository


class DeleteEmailsHandler:
    """
    删除邮件处理器

    只处理属于调用者账号的邮件，其余 ID 静默忽略。
    """

    def __init__(
        self,
        account_repository: MailboxAccountRepository,
        email_repository: EmailRepository,
        trash_service: EmailTrashService,
        logger: Optional[logging.Logger] = None,
    ):
        self._accounts = account_repository
        self._emails = email_repository
        self._trash = trash_service
        self._logger = logger or logging.getLogger(__name__)

    async def handle(self, command: DeleteEmailsCommand) -> DeleteEmailsResult:
        """
        处理删除命令

        Args:
            command: 删除命令

        Returns:
            DeleteEmailsResult: 删除结果
        """
        try:
            email_ids: List[UUID] = [UUID(i) for i in command.email_ids]
        except ValueError:
            return DeleteEmailsResult(
                success=False,
                message="Invalid email ID format",
                error_code="INVALID_EMAIL_ID",
            )

        try:
            account_ids = self._accounts.list_ids_by_user(command.user_id)
            emails = self._emails.list_by_ids(email_ids, account_ids) if account_ids else []
            if not emails:
                return DeleteEmailsResult(
                    success=False,
                    message="No matching emails found",
                    error_code="EMAIL_NOT_FOUND",
                )

            outcome = self._trash.delete(emails)
        except Exception as e:
            self._logger.exception(f"Failed to delete emails for {command.user_id}: {e}")
            return DeleteEmailsResult(
                success=False,
                message=f"Unexpected error: {str(e)}",
                error_code="INTERNAL_ERROR",
            )

        return DeleteEmailsResult(
            success=True,
            moved=outcome.moved,
            destroyed=outcome.destroyed,
            errors=list(outcome.errors),
            message=f"Moved {outcome.moved} to trash, permanently deleted {outcome.destroyed}",
        )
