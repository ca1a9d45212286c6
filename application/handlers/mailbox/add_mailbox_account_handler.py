"""添加邮箱账号处理器"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from application.commands.mailbox.add_mailbox_account import AddMailboxAccountCommand
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.mailbox.services.mailbox_fetcher import MailboxFetcher
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.common.exceptions import (
    DomainException,
    DuplicateEntityException,
    MailboxConnectionError,
)


@dataclass
class AddMailboxAccountResult:
    """
    添加邮箱账号结果

    Attributes:
        success: 是否成功
        account_id: 新创建的邮箱账号 ID（成功时）
        email: 邮箱地址
        message: 结果消息
        error_code: 错误代码（失败时）
    """

    success: bool
    account_id: Optional[str] = None
    email: str = ""
    message: str = ""
    error_code: Optional[str] = None


class AddMailboxAccountHandler:
    """
    添加邮箱账号处理器

    业务流程：
    1. 检查该用户下邮箱是否已存在
    2. 测试 IMAP 连接（阻塞调用放到线程中）
    3. 创建邮箱实体（密码加密）
    4. 保存到仓储
    """

    def __init__(
        self,
        repository: MailboxAccountRepository,
        mailbox_fetcher: MailboxFetcher,
        encryption_key: str,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化处理器

        Args:
            repository: 邮箱账号仓储
            mailbox_fetcher: 远程收取服务（用于连接测试）
            encryption_key: 密码加密密钥
            logger: 可选的日志记录器
        """
        self._repository = repository
        self._fetcher = mailbox_fetcher
        self._encryption_key = encryption_key
        self._logger = logger or logging.getLogger(__name__)

    async def handle(self, command: AddMailboxAccountCommand) -> AddMailboxAccountResult:
        """
        处理添加邮箱账号命令

        Args:
            command: 添加邮箱账号命令

        Returns:
            AddMailboxAccountResult 处理结果
        """
        email = command.email.strip()
        try:
            # 1. 重复检测
            if self._repository.exists_for_user(command.user_id, email):
                return AddMailboxAccountResult(
                    success=False,
                    email=email,
                    message=f"Mailbox '{email}' already exists",
                    error_code="DUPLICATE_ACCOUNT",
                )

            imap_config = ImapConfig(
                server=command.imap_server.strip(),
                port=command.imap_port,
                use_ssl=command.use_ssl,
            )
            username = (command.username or email).strip()

            # 2. 连接测试
            check = await asyncio.to_thread(
                self._fetcher.test_connection,
                imap_config.server,
                imap_config.port,
                username,
                command.password,
                imap_config.use_ssl,
            )
            if not check.success:
                self._logger.info(f"[{email}] Connection test failed: {check.error}")
                return AddMailboxAccountResult(
                    success=False,
                    email=email,
                    message=f"IMAP connection failed: {check.error}",
                    error_code="CONNECTION_FAILED",
                )

            # 3. 创建实体并保存
            account = MailboxAccount.create(
                user_id=command.user_id,
                email=email,
                imap_config=imap_config,
                password=command.password,
                encryption_key=self._encryption_key,
                username=username,
                name=command.name,
            )
            self._repository.add(account)
            self._logger.info(f"[{email}] Mailbox account added for user {command.user_id}")

            return AddMailboxAccountResult(
                success=True,
                account_id=str(account.id),
                email=email,
                message="Mailbox account created successfully",
            )

        except DuplicateEntityException as e:
            return AddMailboxAccountResult(
                success=False,
                email=email,
                message=e.message,
                error_code="DUPLICATE_ACCOUNT",
            )
        except MailboxConnectionError as e:
            return AddMailboxAccountResult(
                success=False,
                email=email,
                message=f"IMAP connection failed: {e.message}",
                error_code="CONNECTION_FAILED",
            )
        except DomainException as e:
            return AddMailboxAccountResult(
                success=False,
                email=email,
                message=e.message,
                error_code=e.code,
            )
        except Exception as e:
            self._logger.exception(f"[{email}] Failed to add mailbox account: {e}")
            return AddMailboxAccountResult(
                success=False,
                email=email,
                message=f"Unexpected error: {str(e)}",
                error_code="INTERNAL_ERROR",
            )
