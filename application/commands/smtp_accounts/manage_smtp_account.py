"""删除 SMTP 账号 / 设为默认命令"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from domain.mail.entities.smtp_account import SmtpAccount
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository


@dataclass
class SmtpAccountCommand:
    """指向单个 SMTP 账号的命令"""

    user_id: str
    account_id: str


@dataclass
class SmtpAccountResult:
    """
    命令执行结果

    error_code:
        - ACCOUNT_NOT_FOUND: 账号不存在或不属于调用者
    """

    success: bool
    account_id: str = ""
    message: str = ""
    error_code: Optional[str] = None


class _SmtpAccountHandlerBase:

    def __init__(
        self,
        repository: SmtpAccountRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._logger = logger or logging.getLogger(__name__)

    def _find(self, command: SmtpAccountCommand) -> Optional[SmtpAccount]:
        try:
            account_id = UUID(command.account_id)
        except ValueError:
            return None
        return self._repository.get_by_id_for_user(account_id, command.user_id)

    @staticmethod
    def _not_found(command: SmtpAccountCommand) -> SmtpAccountResult:
        return SmtpAccountResult(
            success=False,
            account_id=command.account_id,
            message=f"SMTP account with ID '{command.account_id}' not found",
            error_code="ACCOUNT_NOT_FOUND",
        )


class DeleteSmtpAccountHandler(_SmtpAccountHandlerBase):
    """删除 SMTP 账号；删除的是默认账号时不自动指定新的默认"""

    def handle(self, command: SmtpAccountCommand) -> SmtpAccountResult:
        account = self._find(command)
        if account is None:
            return self._not_found(command)

        self._repository.remove(account)
        self._logger.info(f"SMTP account deleted: id={account.id}, user={command.user_id}")

        return SmtpAccountResult(
            success=True,
            account_id=command.account_id,
            message=f"SMTP account '{account.email}' deleted successfully",
        )


class SetDefaultSmtpAccountHandler(_SmtpAccountHandlerBase):
    """把账号设为默认发信账号"""

    def handle(self, command: SmtpAccountCommand) -> SmtpAccountResult:
        account = self._find(command)
        if account is None:
            return self._not_found(command)

        self._repository.set_default(account)
        self._logger.info(f"Default SMTP account changed: id={account.id}, user={command.user_id}")

        return SmtpAccountResult(
            success=True,
            account_id=command.account_id,
            message=f"SMTP account '{account.email}' is now the default",
        )
