"""外发邮件接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SmtpProfile:
    """
    SMTP 发信配置

    Attributes:
        host: SMTP 服务器
        port: 端口
        username: 登录用户名
        password: 登录密码（明文，仅在内存中）
        from_address: 发件人地址
        from_name: 发件人显示名
        use_tls: 465 端口直连 TLS；否则尝试 STARTTLS
    """

    host: str
    port: int
    username: str
    password: str
    from_address: str
    from_name: Optional[str] = None
    use_tls: bool = True

    def __repr__(self) -> str:
        return f"SmtpProfile(host={self.host}, port={self.port}, from={self.from_address})"


@dataclass
class OutboundMessage:
    """待发送的邮件"""

    to: List[str]
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)


@dataclass
class SendResult:
    """发送结果"""

    message_id: str


class OutboundMailSender(ABC):
    """外发邮件通道"""

    @abstractmethod
    def send(self, profile: SmtpProfile, message: OutboundMessage) -> SendResult:
        """
        发送邮件

        Raises:
            MailSendError: 发送失败
        """
        raise NotImplementedError


class SmtpProfileProvider(ABC):
    """查找用户的默认发信配置"""

    @abstractmethod
    def get_default(self, user_id: str) -> Optional[SmtpProfile]:
        """没有配置时返回 None"""
        raise NotImplementedError
