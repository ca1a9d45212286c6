"""同步事件推送实现"""

import logging
import time
from typing import List, Optional

import httpx

from domain.mail.events.mail_events import MailboxUpdated
from domain.mail.services.mailbox_update_publisher import MailboxUpdatePublisher


class LoggingMailboxUpdatePublisher(MailboxUpdatePublisher):
    """只写日志的推送实现，未配置推送地址时使用"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)

    def publish(self, event: MailboxUpdated) -> None:
        self._logger.info(
            f"Mailbox update for user {event.user_id}: "
            f"{event.update_type.value} account={event.aggregate_id}"
        )


class HttpMailboxUpdatePublisher(MailboxUpdatePublisher):
    """HTTP Webhook 推送实现

    使用 httpx 发送 HTTP POST 请求，失败时按固定间隔重试。
    全部失败只记录日志，不抛出异常。

    Attributes:
        RETRY_INTERVALS: 重试间隔列表（秒）
        TIMEOUT: 请求超时时间（秒）
    """

    RETRY_INTERVALS: List[int] = [1, 5, 15]
    TIMEOUT: int = 10

    def __init__(
        self,
        url: str,
        retry_intervals: Optional[List[int]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """初始化推送器

        Args:
            url: 回调 URL
            retry_intervals: 重试间隔，默认 RETRY_INTERVALS
            logger: 日志记录器（可选）
        """
        self._url = url
        self._retry_intervals = self.RETRY_INTERVALS if retry_intervals is None else retry_intervals
        self._logger = logger or logging.getLogger(__name__)

    def publish(self, event: MailboxUpdated) -> None:
        """推送事件，首次尝试加上每个重试间隔各一次"""
        payload = event.to_payload()
        last_error = ""

        for attempt in range(len(self._retry_intervals) + 1):
            try:
                response = httpx.post(
                    self._url,
                    json=payload,
                    timeout=self.TIMEOUT,
                    headers={"Content-Type": "application/json"},
                )
                if 200 <= response.status_code < 300:
                    self._logger.debug(
                        f"Mailbox update delivered: {payload['type']} (attempt {attempt + 1})"
                    )
                    return
                last_error = f"HTTP {response.status_code}"

            except httpx.TimeoutException:
                last_error = "Request timeout"

            except httpx.RequestError as e:
                last_error = f"Request error: {e}"

            self._logger.warning(f"Mailbox update failed: {self._url} - {last_error} (attempt {attempt + 1})")
            if attempt < len(self._retry_intervals):
                time.sleep(self._retry_intervals[attempt])

        self._logger.error(
            f"Mailbox update dropped after {len(self._retry_intervals) + 1} attempts: "
            f"{self._url} - {last_error}"
        )
