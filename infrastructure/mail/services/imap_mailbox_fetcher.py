"""IMAP 远程收取实现"""

import imaplib
import logging
import socket
import ssl
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Iterator, List, Optional, Tuple, Union

from domain.common.exceptions import (
    DomainException,
    MailboxAuthenticationError,
    MailboxConnectionError,
)
from domain.mail.value_objects.raw_message import RawMessage
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.services.mailbox_fetcher import ConnectionTestResult, MailboxFetcher
from infrastructure.mail.services.mime_message_parser import parse_message

IMAP_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# 常见服务商的已发送文件夹名
SENT_FOLDER_NAMES = (
    "[Gmail]/Sent Mail",
    "Sent",
    "Sent Items",
    "INBOX.Sent",
    "Sent Messages",
)


def imap_since(checkpoint: datetime) -> str:
    """IMAP SEARCH SINCE 只精确到日期，格式 dd-Mon-yyyy"""
    return f"{checkpoint.day:02d}-{IMAP_MONTHS[checkpoint.month - 1]}-{checkpoint.year}"


class ImapMailboxFetcher(MailboxFetcher):
    """
    IMAP 远程收取实现

    使用 Python 标准库 imaplib：
    - SSL/TLS 或明文连接
    - 连接失败按指数退避重试，认证失败不重试
    - 只读方式打开文件夹，收取时不修改远程已读状态
    - 先收 INBOX，再收已发送文件夹（找不到则跳过）

    SINCE 只精确到日期，检查点当天的邮件会被重复收取，由入库去重。
    """

    MAX_RETRIES = 3
    BASE_DELAY = 1  # 秒
    DEFAULT_TIMEOUT = 30  # 秒

    def __init__(
        self,
        encryption_key: Union[str, bytes],
        timeout: float = DEFAULT_TIMEOUT,
        include_sent: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化 IMAP 收取服务

        Args:
            encryption_key: 用于解密邮箱密码的加密密钥
            timeout: 套接字超时（秒）
            include_sent: 是否同时收取已发送文件夹
            logger: 可选的日志记录器
        """
        self._encryption_key = encryption_key
        self._timeout = timeout
        self._include_sent = include_sent
        self._logger = logger or logging.getLogger(__name__)

    def fetch_since(self, account: MailboxAccount, checkpoint: Optional[datetime]) -> Iterator[RawMessage]:
        """
        收取检查点之后的邮件

        Args:
            account: 邮箱账号
            checkpoint: 起点，None 表示全量

        Yields:
            RawMessage，INBOX 在前

        Raises:
            MailboxConnectionError: 连接或列出邮件失败
            MailboxAuthenticationError: 认证失败
        """
        if account.imap_config is None:
            raise MailboxConnectionError("IMAP configuration is missing")

        config = account.imap_config
        try:
            password = account.get_decrypted_password(self._encryption_key)
        except DomainException as e:
            raise MailboxAuthenticationError(
                f"Cannot decrypt stored password: {e.message}",
                server=config.server,
                port=config.port,
            ) from e

        with self._connection(config.server, config.port, account.username, password, config.use_ssl) as imap:
            yield from self._fetch_folder(imap, account, "INBOX", checkpoint)

            if self._include_sent:
                sent_folder = self._find_sent_folder(imap, account)
                if sent_folder is not None:
                    yield from self._fetch_folder(imap, account, sent_folder, checkpoint)

    def test_connection(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool = True,
    ) -> ConnectionTestResult:
        """
        测试连接和登录，并确认可以打开 INBOX

        Returns:
            ConnectionTestResult，失败时 error 为原因
        """
        try:
            imap = self._connect(host, port, username, password, use_ssl)
        except MailboxConnectionError as e:
            return ConnectionTestResult(success=False, error=e.message)

        try:
            status, _ = imap.select("INBOX", readonly=True)
            if status != "OK":
                return ConnectionTestResult(success=False, error="Failed to select INBOX")
            return ConnectionTestResult(success=True)
        except imaplib.IMAP4.error as e:
            return ConnectionTestResult(success=False, error=f"Failed to access INBOX: {e}")
        finally:
            self._disconnect(imap)

    def _fetch_folder(
        self,
        imap: imaplib.IMAP4,
        account: MailboxAccount,
        folder: str,
        checkpoint: Optional[datetime],
    ) -> Iterator[RawMessage]:
        status, _ = imap.select(self._quote(folder), readonly=True)
        if status != "OK":
            raise MailboxConnectionError(f"Failed to open folder {folder}")

        criteria = "ALL" if checkpoint is None else f"SINCE {imap_since(checkpoint)}"
        status, data = imap.uid("SEARCH", None, criteria)
        if status != "OK":
            raise MailboxConnectionError(f"Failed to search folder {folder}: {status}")

        uids = data[0].split() if data and data[0] else []
        self._logger.info(f"[{account.email}] {folder}: {len(uids)} message(s) to fetch")

        for uid in uids:
            fetched = self._fetch_one(imap, uid)
            if fetched is None:
                self._logger.warning(f"[{account.email}] {folder}: failed to fetch UID {uid!r}")
                continue
            raw_bytes, flags = fetched
            yield parse_message(raw_bytes, uid=uid.decode(), folder=folder, flags=flags)

    def _fetch_one(self, imap: imaplib.IMAP4, uid: bytes) -> Optional[Tuple[bytes, frozenset]]:
        status, msg_data = imap.uid("FETCH", uid, "(FLAGS BODY.PEEK[])")
        if status != "OK" or not msg_data:
            return None

        for item in msg_data:
            if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[1], bytes):
                flags = frozenset(f.decode() for f in imaplib.ParseFlags(item[0]))
                return item[1], flags
        return None

    def _find_sent_folder(self, imap: imaplib.IMAP4, account: MailboxAccount) -> Optional[str]:
        for name in SENT_FOLDER_NAMES:
            try:
                status, _ = imap.select(self._quote(name), readonly=True)
            except imaplib.IMAP4.error:
                continue
            if status == "OK":
                return name

        self._logger.debug(f"[{account.email}] No Sent folder found, skipping sent mail sync")
        return None

    @staticmethod
    def _quote(folder: str) -> str:
        return f'"{folder}"' if " " in folder else folder

    @contextmanager
    def _connection(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool,
    ) -> Generator[imaplib.IMAP4, None, None]:
        """
        IMAP 连接上下文管理器

        确保连接在使用后正确关闭，即使发生异常。
        """
        imap = self._connect_with_retry(host, port, username, password, use_ssl)
        try:
            yield imap
        except imaplib.IMAP4.abort as e:
            raise MailboxConnectionError(f"IMAP connection lost: {e}", server=host, port=port) from e
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxConnectionError(f"IMAP command failed: {e}", server=host, port=port) from e
        finally:
            self._disconnect(imap)

    def _connect_with_retry(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool,
    ) -> imaplib.IMAP4:
        """
        带重试的连接逻辑（指数退避）

        Raises:
            MailboxAuthenticationError: 认证失败（不重试）
            MailboxConnectionError: 所有重试都失败
        """
        last_error: Optional[MailboxConnectionError] = None
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._connect(host, port, username, password, use_ssl)
            except MailboxAuthenticationError:
                raise
            except MailboxConnectionError as e:
                last_error = e
                delay = self.BASE_DELAY * (2**attempt)  # 1s, 2s, 4s
                self._logger.warning(
                    f"IMAP connection attempt {attempt + 1}/{self.MAX_RETRIES} "
                    f"to {host}:{port} failed: {e.message}"
                )
                if attempt < self.MAX_RETRIES - 1:
                    time.sleep(delay)

        self._logger.error(f"IMAP connection failed after {self.MAX_RETRIES} retries for {username}")
        raise last_error  # type: ignore[misc]

    def _connect(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool,
    ) -> imaplib.IMAP4:
        """
        建立连接并登录

        Raises:
            MailboxConnectionError: 连接失败
            MailboxAuthenticationError: 认证失败
        """
        try:
            self._logger.debug(f"Connecting to {host}:{port}")
            if use_ssl:
                imap = imaplib.IMAP4_SSL(
                    host=host,
                    port=port,
                    ssl_context=ssl.create_default_context(),
                    timeout=self._timeout,
                )
            else:
                imap = imaplib.IMAP4(host=host, port=port, timeout=self._timeout)
        except socket.timeout as e:
            raise MailboxConnectionError(
                f"Connection timed out after {self._timeout} seconds", server=host, port=port
            ) from e
        except socket.gaierror as e:
            raise MailboxConnectionError(f"Failed to resolve hostname: {e}", server=host, port=port) from e
        except ssl.SSLError as e:
            raise MailboxConnectionError(f"SSL/TLS error: {e}", server=host, port=port) from e
        except ConnectionRefusedError as e:
            raise MailboxConnectionError("Connection refused by server", server=host, port=port) from e
        except (OSError, imaplib.IMAP4.error) as e:
            raise MailboxConnectionError(f"IMAP connection failed: {e}", server=host, port=port) from e

        try:
            self._logger.debug(f"Authenticating as {username}")
            imap.login(username, password)
        except imaplib.IMAP4.error as e:
            self._disconnect(imap)
            raise MailboxAuthenticationError(
                f"IMAP authentication failed: {e}", server=host, port=port
            ) from e

        self._logger.info(f"Successfully connected to {host}:{port}")
        return imap

    def _disconnect(self, imap: imaplib.IMAP4) -> None:
        """断开 IMAP 连接，关闭时的错误只记录"""
        try:
            # close() 只能在 SELECTED 状态调用
            if imap.state == "SELECTED":
                imap.close()
        except Exception as e:
            self._logger.debug(f"Error during close: {e}")

        try:
            imap.logout()
        except Exception as e:
            self._logger.debug(f"Error during logout: {e}")
