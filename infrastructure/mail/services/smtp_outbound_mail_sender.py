"""SMTP 外发邮件实现"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Union

from domain.common.exceptions import DomainException, MailSendError
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository
from domain.mail.services.outbound_mail_sender import (
    OutboundMailSender,
    OutboundMessage,
    SendResult,
    SmtpProfile,
    SmtpProfileProvider,
)


class SmtpOutboundMailSender(OutboundMailSender):
    """
    SMTP 外发邮件实现

    使用 Python 标准库 smtplib：465 端口直连 TLS，其他端口在 use_tls 时走 STARTTLS。
    每次发送建立一个新连接。
    """

    SSL_PORT = 465
    DEFAULT_TIMEOUT = 30  # 秒

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, logger: Optional[logging.Logger] = None):
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)

    def send(self, profile: SmtpProfile, message: OutboundMessage) -> SendResult:
        """
        发送邮件

        Args:
            profile: 发信配置
            message: 邮件内容

        Returns:
            SendResult，包含生成的 Message-ID

        Raises:
            MailSendError: 没有收件人、连接、认证或投递失败
        """
        recipients = [*message.to, *message.cc, *message.bcc]
        if not recipients:
            raise MailSendError("No recipients")

        mime = self.build_mime(profile, message)
        message_id = mime["Message-ID"]

        try:
            with self._open(profile) as smtp:
                if profile.username:
                    smtp.login(profile.username, profile.password)
                smtp.send_message(mime, from_addr=profile.from_address, to_addrs=recipients)
        except smtplib.SMTPAuthenticationError as e:
            raise MailSendError(f"SMTP authentication failed: {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise MailSendError(f"SMTP send failed: {e}") from e

        self._logger.info(f"Sent mail {message_id} via {profile.host}:{profile.port} to {len(recipients)} recipient(s)")
        return SendResult(message_id=message_id)

    @staticmethod
    def build_mime(profile: SmtpProfile, message: OutboundMessage) -> EmailMessage:
        """构造 MIME 邮件，密送地址不写入头部"""
        mime = EmailMessage()
        mime["From"] = formataddr((profile.from_name or "", profile.from_address))
        mime["To"] = ", ".join(message.to)
        if message.cc:
            mime["Cc"] = ", ".join(message.cc)
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain=profile.from_address.rpartition("@")[2] or None)

        mime.set_content(message.text or "")
        if message.html:
            mime.add_alternative(message.html, subtype="html")
        return mime

    def _open(self, profile: SmtpProfile) -> smtplib.SMTP:
        if profile.port == self.SSL_PORT:
            return smtplib.SMTP_SSL(
                profile.host,
                profile.port,
                timeout=self._timeout,
                context=ssl.create_default_context(),
            )

        smtp = smtplib.SMTP(profile.host, profile.port, timeout=self._timeout)
        try:
            if profile.use_tls:
                smtp.starttls(context=ssl.create_default_context())
        except (smtplib.SMTPException, OSError):
            smtp.close()
            raise
        return smtp


class SettingsSmtpProfileProvider(SmtpProfileProvider):
    """
    从服务配置读取发信配置

    所有用户共用同一个 SMTP 账号；未配置时返回 None。
    作为用户没有默认 SMTP 账号时的回退。
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        use_tls: bool = True,
        from_name: Optional[str] = None,
    ):
        self._profile: Optional[SmtpProfile] = None
        if host and from_address:
            self._profile = SmtpProfile(
                host=host,
                port=port,
                username=username,
                password=password,
                from_address=from_address,
                from_name=from_name,
                use_tls=use_tls,
            )

    def get_default(self, user_id: str) -> Optional[SmtpProfile]:
        return self._profile


class RepositorySmtpProfileProvider(SmtpProfileProvider):
    """
    使用用户自己的默认 SMTP 账号

    用户没有默认账号，或密码无法解密时，回退到 fallback（通常是服务配置）。
    """

    def __init__(
        self,
        repository: SmtpAccountRepository,
        encryption_key: Union[str, bytes],
        fallback: Optional[SmtpProfileProvider] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._encryption_key = encryption_key
        self._fallback = fallback
        self._logger = logger or logging.getLogger(__name__)

    def get_default(self, user_id: str) -> Optional[SmtpProfile]:
        account = self._repository.get_default(user_id)
        if account is not None:
            try:
                return account.to_profile(self._encryption_key)
            except DomainException as e:
                self._logger.error(f"Cannot use SMTP account {account.id} of {user_id}: {e.message}")

        if self._fallback is None:
            return None
        return self._fallback.get_default(user_id)
