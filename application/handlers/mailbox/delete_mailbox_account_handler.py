"""删除邮箱账号处理器"""

from uuid import UUID

from application.commands.mailbox.delete_mailbox_account import (
    DeleteMailboxAccountCommand,
    DeleteMailboxAccountResult,
)
from domain.common.base_entity import utc_now
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository


class DeleteMailboxAccountHandler:
    """
    删除邮箱账号处理器

    只能删除调用者自己的账号；租约有效（同步进行中）时拒绝删除。
    账号下的邮件、附件记录随账号级联删除。
    """

    def __init__(self, repository: MailboxAccountRepository):
        """
        初始化处理器

        Args:
            repository: 邮箱账号仓储
        """
        self._repository = repository

    async def handle(self, command: DeleteMailboxAccountCommand) -> DeleteMailboxAccountResult:
        """
        处理删除命令

        Args:
            command: 删除命令

        Returns:
            DeleteMailboxAccountResult: 删除结果
        """
        # 1. 验证 UUID 格式并查找邮箱
        try:
            account_uuid = UUID(command.account_id)
        except ValueError:
            return DeleteMailboxAccountResult(
                success=False,
                account_id=command.account_id,
                message=f"Invalid account ID format: '{command.account_id}'",
                error_code="ACCOUNT_NOT_FOUND",
            )

        account = self._repository.get_by_id(account_uuid)
        if account is None or account.user_id != command.user_id:
            return DeleteMailboxAccountResult(
                success=False,
                account_id=command.account_id,
                message=f"Mailbox account with ID '{command.account_id}' not found",
                error_code="ACCOUNT_NOT_FOUND",
            )

        # 2. 同步进行中不能删除
        if account.is_sync_in_progress(utc_now()):
            return DeleteMailboxAccountResult(
                success=False,
                account_id=command.account_id,
                email=account.email,
                message="Cannot delete mailbox while a sync is in progress",
                error_code="SYNC_IN_PROGRESS",
            )

        # 3. 执行删除
        self._repository.remove(account)

        return DeleteMailboxAccountResult(
            success=True,
            account_id=command.account_id,
            email=account.email,
            message=f"Mailbox '{account.email}' deleted successfully",
        )
