"""同步事件推送接口"""

from abc import ABC, abstractmethod

from domain.mail.events.mail_events import MailboxUpdated


class MailboxUpdatePublisher(ABC):
    """向用户推送邮箱同步事件，推送失败不影响同步"""

    @abstractmethod
    def publish(self, event: MailboxUpdated) -> None:
        raise NotImplementedError
