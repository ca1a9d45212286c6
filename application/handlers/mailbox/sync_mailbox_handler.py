"""同步邮箱处理器"""

import logging
from typing import Optional
from uuid import UUID

from application.commands.mailbox.sync_mailbox import (
    SyncAllMailboxesCommand,
    SyncAllMailboxesResult,
    SyncMailboxCommand,
    SyncMailboxResult,
)
from application.mail.services.sync_coordinator import SyncCoordinator, SyncOutcome
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.usage.services.billing_gate import BillingGate


def _to_result(account_id: str, outcome: SyncOutcome) -> SyncMailboxResult:
    if outcome.was_in_progress:
        return SyncMailboxResult(
            success=True,
            account_id=account_id,
            in_progress=True,
            message="Sync already in progress",
        )

    if outcome.is_total_failure:
        return SyncMailboxResult(
            success=False,
            account_id=account_id,
            skipped=outcome.skipped,
            errors=list(outcome.errors),
            message=outcome.errors[-1],
            error_code="SYNC_FAILED",
        )

    return SyncMailboxResult(
        success=True,
        account_id=account_id,
        synced=outcome.synced,
        skipped=outcome.skipped,
        errors=list(outcome.errors),
        message=f"Synced {outcome.synced} emails",
    )


class SyncMailboxHandler:
    """
    同步单个邮箱账号

    业务流程：
    1. 校验账号属于调用者
    2. 计费检查
    3. 交给 SyncCoordinator 执行一轮同步
    """

    def __init__(
        self,
        account_repository: MailboxAccountRepository,
        sync_coordinator: SyncCoordinator,
        billing_gate: BillingGate,
        logger: Optional[logging.Logger] = None,
    ):
        self._accounts = account_repository
        self._coordinator = sync_coordinator
        self._billing = billing_gate
        self._logger = logger or logging.getLogger(__name__)

    async def handle(self, command: SyncMailboxCommand) -> SyncMailboxResult:
        """
        处理同步命令

        Args:
            command: 同步命令

        Returns:
            SyncMailboxResult: 同步结果；本轮中止或收取到的邮件全部入库失败时 error_code 为 SYNC_FAILED
        """
        try:
            account_uuid = UUID(command.account_id)
        except ValueError:
            return SyncMailboxResult(
                success=False,
                account_id=command.account_id,
                message=f"Invalid account ID format: '{command.account_id}'",
                error_code="ACCOUNT_NOT_FOUND",
            )

        try:
            account = self._accounts.get_by_id(account_uuid)
            if account is None or account.user_id != command.user_id:
                return SyncMailboxResult(
                    success=False,
                    account_id=command.account_id,
                    message=f"Mailbox account with ID '{command.account_id}' not found",
                    error_code="ACCOUNT_NOT_FOUND",
                )

            check = self._billing.can_sync(command.user_id)
            if not check.allowed:
                return SyncMailboxResult(
                    success=False,
                    account_id=command.account_id,
                    message=check.reason or "Sync not allowed",
                    error_code="SYNC_NOT_ALLOWED",
                )

            outcome = await self._coordinator.start_sync(account.id)
            return _to_result(command.account_id, outcome)

        except Exception as e:
            self._logger.exception(f"Sync of {command.account_id} failed unexpectedly: {e}")
            return SyncMailboxResult(
                success=False,
                account_id=command.account_id,
                message=f"Unexpected error: {str(e)}",
                error_code="INTERNAL_ERROR",
            )


class SyncAllMailboxesHandler:
    """
    同步调用者的全部邮箱账号

    各账号并发同步、互不影响；单个账号失败只体现在它自己的结果中。
    """

    def __init__(
        self,
        sync_coordinator: SyncCoordinator,
        billing_gate: BillingGate,
        logger: Optional[logging.Logger] = None,
    ):
        self._coordinator = sync_coordinator
        self._billing = billing_gate
        self._logger = logger or logging.getLogger(__name__)

    async def handle(self, command: SyncAllMailboxesCommand) -> SyncAllMailboxesResult:
        try:
            check = self._billing.can_sync(command.user_id)
            if not check.allowed:
                return SyncAllMailboxesResult(
                    success=False,
                    message=check.reason or "Sync not allowed",
                    error_code="SYNC_NOT_ALLOWED",
                )

            outcomes = await self._coordinator.sync_all(command.user_id)
        except Exception as e:
            self._logger.exception(f"Sync of all mailboxes for {command.user_id} failed: {e}")
            return SyncAllMailboxesResult(
                success=False,
                message=f"Unexpected error: {str(e)}",
                error_code="INTERNAL_ERROR",
            )

        results = [_to_result(str(account_id), outcome) for account_id, outcome in outcomes.items()]
        synced = sum(r.synced for r in results)
        return SyncAllMailboxesResult(
            success=True,
            results=results,
            message=f"Synced {synced} emails across {len(results)} mailbox(es)",
        )
