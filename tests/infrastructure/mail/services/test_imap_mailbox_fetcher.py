"""ImapMailboxFetcher 单元测试"""

import imaplib
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

from domain.common.exceptions import MailboxAuthenticationError, MailboxConnectionError
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.value_objects.imap_config import ImapConfig
from infrastructure.mail.services.imap_mailbox_fetcher import ImapMailboxFetcher, imap_since


# 测试用的加密密钥 (有效的 Fernet 密钥)
TEST_ENCRYPTION_KEY = "xiJ-vQsN3KaewjOgc0qvuNE831TgyRAPSs-8X14qHes="

IMAP_SSL = "infrastructure.mail.services.imap_mailbox_fetcher.imaplib.IMAP4_SSL"
SLEEP = "infrastructure.mail.services.imap_mailbox_fetcher.time.sleep"


def create_test_account() -> MailboxAccount:
    """创建测试用的邮箱账号"""
    return MailboxAccount.create(
        user_id="user-1",
        email="test@example.com",
        imap_config=ImapConfig(server="imap.example.com", port=993),
        password="test_password",
        encryption_key=TEST_ENCRYPTION_KEY,
    )


def create_mock_email_data(message_id: str, subject: str = "Test Subject") -> bytes:
    """创建模拟的原始邮件数据"""
    return (
        "From: sender@example.com\r\n"
        "To: test@example.com\r\n"
        f"Subject: {subject}\r\n"
        f"Message-ID: {message_id}\r\n"
        "Date: Mon, 16 Dec 2024 10:00:00 +0000\r\n"
        'Content-Type: text/plain; charset="utf-8"\r\n'
        "\r\n"
        "Test body content\r\n"
    ).encode("utf-8")


def create_mock_imap(folders: dict) -> MagicMock:
    """
    创建模拟的 IMAP 连接

    Args:
        folders: {选择时使用的文件夹名: {uid: 原文}}
    """
    imap = MagicMock()
    imap.state = "AUTH"
    imap.login.return_value = ("OK", [b"Logged in"])
    current = {}

    def select(folder, readonly=False):
        if folder not in folders:
            return ("NO", [b"No such folder"])
        current["folder"] = folder
        return ("OK", [str(len(folders[folder])).encode()])

    def uid(command, *args):
        messages = folders[current["folder"]]
        if command == "SEARCH":
            return ("OK", [b" ".join(messages.keys())])
        message_uid = args[0]
        return ("OK", [(b"1 (UID " + message_uid + b" FLAGS (\\Seen) BODY[] {100}", messages[message_uid]), b")"])

    imap.select.side_effect = select
    imap.uid.side_effect = uid
    return imap


class TestImapSince:

    def test_format(self):
        assert imap_since(datetime(2025, 3, 1, 23, 59, tzinfo=timezone.utc)) == "01-Mar-2025"


class TestImapMailboxFetcherFetch:
    """收取测试"""

    @patch(IMAP_SSL)
    def test_fetch_inbox(self, mock_imap_class):
        """测试收取 INBOX 全部邮件并解析"""
        # Arrange
        mock_imap = create_mock_imap({
            "INBOX": {b"1": create_mock_email_data("<a@x>"), b"2": create_mock_email_data("<b@x>")},
        })
        mock_imap_class.return_value = mock_imap
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY, include_sent=False)

        # Act
        messages = list(fetcher.fetch_since(create_test_account(), None))

        # Assert
        assert [m.message_id for m in messages] == ["<a@x>", "<b@x>"]
        assert [m.uid for m in messages] == ["1", "2"]
        assert all(m.folder == "INBOX" and m.is_seen for m in messages)
        mock_imap.login.assert_called_once_with("test@example.com", "test_password")
        mock_imap.uid.assert_any_call("SEARCH", None, "ALL")
        mock_imap.select.assert_called_with("INBOX", readonly=True)
        mock_imap.logout.assert_called_once()

    @patch(IMAP_SSL)
    def test_fetch_since_checkpoint(self, mock_imap_class):
        mock_imap = create_mock_imap({"INBOX": {}})
        mock_imap_class.return_value = mock_imap
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY, include_sent=False)

        messages = list(fetcher.fetch_since(create_test_account(), datetime(2025, 3, 1, tzinfo=timezone.utc)))

        assert messages == []
        mock_imap.uid.assert_called_once_with("SEARCH", None, "SINCE 01-Mar-2025")

    @patch(IMAP_SSL)
    def test_fetch_includes_sent_folder(self, mock_imap_class):
        """测试 INBOX 之后收取找到的已发送文件夹"""
        mock_imap_class.return_value = create_mock_imap({
            "INBOX": {b"1": create_mock_email_data("<in@x>")},
            "Sent": {b"7": create_mock_email_data("<out@x>")},
        })
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        messages = list(fetcher.fetch_since(create_test_account(), None))

        assert [(m.message_id, m.folder) for m in messages] == [("<in@x>", "INBOX"), ("<out@x>", "Sent")]

    @patch(IMAP_SSL)
    def test_missing_sent_folder_is_skipped(self, mock_imap_class):
        mock_imap_class.return_value = create_mock_imap({"INBOX": {b"1": create_mock_email_data("<in@x>")}})
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        messages = list(fetcher.fetch_since(create_test_account(), None))

        assert len(messages) == 1

    @patch(IMAP_SSL)
    def test_inbox_select_failure(self, mock_imap_class):
        mock_imap_class.return_value = create_mock_imap({})
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        with pytest.raises(MailboxConnectionError, match="Failed to open folder INBOX"):
            list(fetcher.fetch_since(create_test_account(), None))

    @patch(IMAP_SSL)
    def test_connection_lost_during_fetch(self, mock_imap_class):
        """测试收取过程中断线转换为 MailboxConnectionError"""
        mock_imap = create_mock_imap({"INBOX": {b"1": b""}})
        mock_imap.uid.side_effect = imaplib.IMAP4.abort("socket closed")
        mock_imap_class.return_value = mock_imap
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        with pytest.raises(MailboxConnectionError, match="connection lost"):
            list(fetcher.fetch_since(create_test_account(), None))
        mock_imap.logout.assert_called_once()

    def test_wrong_key_is_authentication_error(self):
        fetcher = ImapMailboxFetcher(encryption_key="3Kq0vR6fG2xYp9mV1bN8cL4tW7zH5jD0sA6eU2iO9rM=")

        with pytest.raises(MailboxAuthenticationError):
            list(fetcher.fetch_since(create_test_account(), None))


class TestImapMailboxFetcherConnect:
    """连接与重试测试"""

    @patch(SLEEP)
    @patch(IMAP_SSL)
    def test_retries_with_backoff(self, mock_imap_class, mock_sleep):
        """测试连接失败按 1s、2s 退避重试三次"""
        mock_imap_class.side_effect = ConnectionRefusedError()
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY, logger=Mock())

        with pytest.raises(MailboxConnectionError) as exc_info:
            list(fetcher.fetch_since(create_test_account(), None))

        assert exc_info.value.server == "imap.example.com"
        assert mock_imap_class.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @patch(SLEEP)
    @patch(IMAP_SSL)
    def test_authentication_failure_is_not_retried(self, mock_imap_class, mock_sleep):
        mock_imap = MagicMock()
        mock_imap.login.side_effect = imaplib.IMAP4.error("Invalid credentials")
        mock_imap_class.return_value = mock_imap
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        with pytest.raises(MailboxAuthenticationError):
            list(fetcher.fetch_since(create_test_account(), None))

        assert mock_imap_class.call_count == 1
        mock_sleep.assert_not_called()

    @patch("infrastructure.mail.services.imap_mailbox_fetcher.imaplib.IMAP4")
    def test_plain_connection(self, mock_imap_class):
        mock_imap_class.return_value = create_mock_imap({"INBOX": {}})
        fetcher = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY)

        result = fetcher.test_connection("imap.example.com", 143, "u", "p", use_ssl=False)

        assert result.success is True
        mock_imap_class.assert_called_once_with(host="imap.example.com", port=143, timeout=30)


class TestImapMailboxFetcherTestConnection:

    @patch(IMAP_SSL)
    def test_success(self, mock_imap_class):
        mock_imap_class.return_value = create_mock_imap({"INBOX": {}})

        result = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY).test_connection(
            "imap.example.com", 993, "u", "p"
        )

        assert result.success is True
        assert result.error is None

    @patch(IMAP_SSL)
    def test_login_failure(self, mock_imap_class):
        mock_imap = MagicMock()
        mock_imap.login.side_effect = imaplib.IMAP4.error("Invalid credentials")
        mock_imap_class.return_value = mock_imap

        result = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY).test_connection(
            "imap.example.com", 993, "u", "p"
        )

        assert result.success is False
        assert "authentication failed" in result.error

    @patch(IMAP_SSL)
    def test_inbox_unavailable(self, mock_imap_class):
        mock_imap_class.return_value = create_mock_imap({})

        result = ImapMailboxFetcher(encryption_key=TEST_ENCRYPTION_KEY).test_connection(
            "imap.example.com", 993, "u", "p"
        )

        assert result.error == "Failed to select INBOX"
