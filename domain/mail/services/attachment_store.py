"""附件存储接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredAttachment:
    """
    附件存储结果

    Attributes:
        storage_key: 存储键（等于附件 ID）
        size: 写入字节数
    """

    storage_key: str
    size: int


class AttachmentStore(ABC):
    """
    附件二进制存储

    失败时抛出 AttachmentStoreError。
    """

    @abstractmethod
    def put(self, attachment_id: str, mime_type: str, data: bytes) -> StoredAttachment:
        raise NotImplementedError

    @abstractmethod
    def get(self, storage_key: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def delete(self, storage_key: str) -> None:
        raise NotImplementedError
