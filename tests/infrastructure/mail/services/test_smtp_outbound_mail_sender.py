"""SmtpOutboundMailSender 测试"""

import smtplib
import pytest
from unittest.mock import MagicMock, Mock, patch

from cryptography.fernet import Fernet

from domain.common.exceptions import MailSendError
from domain.mail.entities.smtp_account import SmtpAccount
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository
from domain.mail.services.outbound_mail_sender import OutboundMessage, SmtpProfile
from infrastructure.mail.services.smtp_outbound_mail_sender import (
    RepositorySmtpProfileProvider,
    SettingsSmtpProfileProvider,
    SmtpOutboundMailSender,
)


SMTP = "infrastructure.mail.services.smtp_outbound_mail_sender.smtplib.SMTP"
SMTP_SSL = "infrastructure.mail.services.smtp_outbound_mail_sender.smtplib.SMTP_SSL"


def create_profile(port: int = 587, use_tls: bool = True) -> SmtpProfile:
    return SmtpProfile(
        host="smtp.example.com",
        port=port,
        username="bot@example.com",
        password="secret",
        from_address="bot@example.com",
        from_name="Mail Bot",
        use_tls=use_tls,
    )


def create_message(**overrides) -> OutboundMessage:
    values = dict(
        to=["boss@example.com"],
        subject="Fwd: Invoice",
        text="see below",
        html="<p>see below</p>",
        bcc=["audit@example.com"],
    )
    values.update(overrides)
    return OutboundMessage(**values)


def create_mock_smtp() -> MagicMock:
    smtp = MagicMock()
    smtp.__enter__.return_value = smtp
    return smtp


class TestBuildMime:

    def test_headers(self):
        """测试密送地址不写入头部"""
        mime = SmtpOutboundMailSender.build_mime(create_profile(), create_message(cc=["cc@example.com"]))

        assert mime["From"] == "Mail Bot <bot@example.com>"
        assert mime["To"] == "boss@example.com"
        assert mime["Cc"] == "cc@example.com"
        assert mime["Bcc"] is None
        assert mime["Message-ID"].endswith("@example.com>")
        assert mime.get_body(("html",)).get_content().strip() == "<p>see below</p>"


class TestSmtpOutboundMailSender:

    @patch(SMTP)
    def test_send_with_starttls(self, mock_smtp_class):
        """测试 587 端口走 STARTTLS 并登录"""
        # Arrange
        mock_smtp = create_mock_smtp()
        mock_smtp_class.return_value = mock_smtp
        sender = SmtpOutboundMailSender()

        # Act
        result = sender.send(create_profile(), create_message())

        # Assert
        mock_smtp_class.assert_called_once_with("smtp.example.com", 587, timeout=30)
        mock_smtp.starttls.assert_called_once()
        mock_smtp.login.assert_called_once_with("bot@example.com", "secret")
        kwargs = mock_smtp.send_message.call_args.kwargs
        assert kwargs["from_addr"] == "bot@example.com"
        assert kwargs["to_addrs"] == ["boss@example.com", "audit@example.com"]
        assert result.message_id.startswith("<")

    @patch(SMTP_SSL)
    def test_send_over_ssl_port(self, mock_smtp_ssl_class):
        mock_smtp_ssl_class.return_value = create_mock_smtp()

        SmtpOutboundMailSender().send(create_profile(port=465), create_message())

        mock_smtp_ssl_class.assert_called_once()

    @patch(SMTP)
    def test_send_without_tls(self, mock_smtp_class):
        mock_smtp = create_mock_smtp()
        mock_smtp_class.return_value = mock_smtp

        SmtpOutboundMailSender().send(create_profile(port=25, use_tls=False), create_message())

        mock_smtp.starttls.assert_not_called()

    def test_no_recipients(self):
        with pytest.raises(MailSendError, match="No recipients"):
            SmtpOutboundMailSender().send(create_profile(), create_message(to=[], bcc=[]))

    @patch(SMTP)
    def test_authentication_failure(self, mock_smtp_class):
        mock_smtp = create_mock_smtp()
        mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        mock_smtp_class.return_value = mock_smtp

        with pytest.raises(MailSendError, match="authentication failed"):
            SmtpOutboundMailSender().send(create_profile(), create_message())

    @patch(SMTP)
    def test_connection_failure(self, mock_smtp_class):
        mock_smtp_class.side_effect = ConnectionRefusedError()

        with pytest.raises(MailSendError, match="SMTP send failed"):
            SmtpOutboundMailSender().send(create_profile(), create_message())

    @patch(SMTP)
    def test_starttls_failure_closes_connection(self, mock_smtp_class):
        mock_smtp = create_mock_smtp()
        mock_smtp.starttls.side_effect = smtplib.SMTPNotSupportedError("STARTTLS not supported")
        mock_smtp_class.return_value = mock_smtp

        with pytest.raises(MailSendError):
            SmtpOutboundMailSender().send(create_profile(), create_message())

        mock_smtp.close.assert_called_once()


class TestSettingsSmtpProfileProvider:

    def test_configured(self):
        provider = SettingsSmtpProfileProvider(
            host="smtp.example.com", port=587, username="u", password="p", from_address="bot@example.com"
        )

        profile = provider.get_default("user-1")

        assert profile.host == "smtp.example.com"
        assert profile.use_tls is True

    def test_not_configured(self):
        provider = SettingsSmtpProfileProvider(host="", port=587, username="", password="", from_address="")

        assert provider.get_default("user-1") is None


class TestRepositorySmtpProfileProvider:
    """用户默认 SMTP 账号优先，其次是服务配置"""

    @pytest.fixture
    def key(self) -> bytes:
        return Fernet.generate_key()

    @pytest.fixture
    def fallback(self) -> SettingsSmtpProfileProvider:
        return SettingsSmtpProfileProvider(
            host="relay.example.com", port=587, username="u", password="p", from_address="bot@example.com"
        )

    def test_uses_users_default_account(self, key, fallback):
        # Arrange
        repository = Mock(spec=SmtpAccountRepository)
        repository.get_default.return_value = SmtpAccount.create(
            user_id="user-1",
            email="me@example.com",
            host="smtp.example.com",
            port=465,
            password="app-password",
            encryption_key=key,
        )
        provider = RepositorySmtpProfileProvider(repository, key, fallback)

        # Act
        profile = provider.get_default("user-1")

        # Assert
        repository.get_default.assert_called_once_with("user-1")
        assert profile.host == "smtp.example.com"
        assert profile.from_address == "me@example.com"
        assert profile.password == "app-password"

    def test_falls_back_without_default_account(self, key, fallback):
        repository = Mock(spec=SmtpAccountRepository)
        repository.get_default.return_value = None

        profile = RepositorySmtpProfileProvider(repository, key, fallback).get_default("user-1")

        assert profile.host == "relay.example.com"

    def test_undecryptable_password_falls_back(self, key, fallback):
        """测试密钥轮换后无法解密时使用服务配置"""
        repository = Mock(spec=SmtpAccountRepository)
        repository.get_default.return_value = SmtpAccount.create(
            user_id="user-1",
            email="me@example.com",
            host="smtp.example.com",
            port=465,
            password="app-password",
            encryption_key=Fernet.generate_key(),
        )

        profile = RepositorySmtpProfileProvider(repository, key, fallback).get_default("user-1")

        assert profile.host == "relay.example.com"

    def test_nothing_configured(self, key):
        repository = Mock(spec=SmtpAccountRepository)
        repository.get_default.return_value = None

        assert RepositorySmtpProfileProvider(repository, key).get_default("user-1") is None
