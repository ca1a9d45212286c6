"""远程邮箱收取接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mail.value_objects.raw_message import RawMessage


@dataclass
class ConnectionTestResult:
    """
    连接测试结果

    Attributes:
        success: 是否连接并登录成功
        error: 失败原因
    """

    success: bool
    error: Optional[str] = None


class MailboxFetcher(ABC):
    """
    远程邮箱收取接口

    具体协议（IMAP）在基础设施层实现。实现是阻塞的，调用方负责放到线程池执行。
    """

    @abstractmethod
    def fetch_since(self, account: MailboxAccount, checkpoint: Optional[datetime]) -> Iterable[RawMessage]:
        """
        收取检查点之后的邮件

        Args:
            account: 邮箱账号（含连接参数和加密凭证）
            checkpoint: 起点时间，None 表示全量

        Returns:
            原始邮件序列，没有邮件时为空

        Raises:
            MailboxConnectionError: 无法连接或列出邮件
            MailboxAuthenticationError: 认证失败
        """
        raise NotImplementedError

    @abstractmethod
    def test_connection(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool = True,
    ) -> ConnectionTestResult:
        """
        测试连接参数是否可用（不抛出协议异常）

        Returns:
            ConnectionTestResult
        """
        raise NotImplementedError
