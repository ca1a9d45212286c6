"""添加 SMTP 账号命令"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from domain.common.exceptions import DomainException
from domain.mail.entities.smtp_account import SmtpAccount
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository


@dataclass
class CreateSmtpAccountCommand:
    """
    添加 SMTP 账号命令

    Attributes:
        user_id: 调用者
        email: 发件人地址
        host / port: SMTP 服务器
        password: 明文密码
        username: 登录用户名，默认与邮箱地址相同
        name: 显示名称
        alias: 发件人显示名
        use_ssl: 是否加密连接
        is_default: 是否设为默认（用户的第一个账号总是默认）
    """

    user_id: str
    email: str
    host: str
    port: int
    password: str
    username: Optional[str] = None
    name: Optional[str] = None
    alias: Optional[str] = None
    use_ssl: bool = True
    is_default: bool = False


@dataclass
class CreateSmtpAccountResult:
    """命令执行结果"""

    success: bool
    account_id: Optional[str] = None
    is_default: bool = False
    message: str = ""
    error_code: Optional[str] = None


class CreateSmtpAccountHandler:
    """添加 SMTP 账号处理器"""

    def __init__(
        self,
        repository: SmtpAccountRepository,
        encryption_key: Union[str, bytes],
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._encryption_key = encryption_key
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: CreateSmtpAccountCommand) -> CreateSmtpAccountResult:
        is_default = command.is_default or self._repository.get_default(command.user_id) is None

        try:
            account = SmtpAccount.create(
                user_id=command.user_id,
                email=command.email,
                host=command.host,
                port=command.port,
                password=command.password,
                encryption_key=self._encryption_key,
                username=command.username,
                name=command.name,
                alias=command.alias,
                use_ssl=command.use_ssl,
                is_default=is_default,
            )
            self._repository.add(account)
        except DomainException as e:
            return CreateSmtpAccountResult(
                success=False,
                message=e.message,
                error_code=e.code,
            )

        self._logger.info(
            f"SMTP account added: id={account.id}, user={command.user_id}, "
            f"host={account.host}:{account.port}, default={account.is_default}"
        )

        return CreateSmtpAccountResult(
            success=True,
            account_id=str(account.id),
            is_default=account.is_default,
            message="SMTP account added successfully",
        )
