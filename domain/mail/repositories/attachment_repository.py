"""附件仓储接口"""

from abc import ABC, abstractmethod
from typing import List, Sequence
from uuid import UUID

from domain.mail.entities.attachment import Attachment


class AttachmentRepository(ABC):
    """附件元数据仓储"""

    @abstractmethod
    def add(self, attachment: Attachment) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_by_email_ids(self, email_ids: Sequence[UUID]) -> List[Attachment]:
        """获取多封邮件的附件"""
        raise NotImplementedError
