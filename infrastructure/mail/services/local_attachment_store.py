"""本地文件系统附件存储"""

import logging
import os
from typing import Optional

from domain.common.exceptions import AttachmentStoreError
from domain.mail.services.attachment_store import AttachmentStore, StoredAttachment


class LocalAttachmentStore(AttachmentStore):
    """
    本地目录附件存储

    每个附件一个文件，文件名就是附件 ID，存储键与附件 ID 相同。
    """

    def __init__(self, base_dir: str, logger: Optional[logging.Logger] = None):
        """
        Args:
            base_dir: 存储目录，不存在时在首次写入时创建
            logger: 可选的日志记录器
        """
        self._base_dir = base_dir
        self._logger = logger or logging.getLogger(__name__)

    def put(self, attachment_id: str, mime_type: str, data: bytes) -> StoredAttachment:
        path = self._path(attachment_id)
        try:
            os.makedirs(self._base_dir, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise AttachmentStoreError(f"Failed to store attachment {attachment_id}: {e}") from e

        self._logger.debug(f"Stored attachment {attachment_id} ({mime_type}, {len(data)} bytes)")
        return StoredAttachment(storage_key=attachment_id, size=len(data))

    def get(self, storage_key: str) -> bytes:
        try:
            with open(self._path(storage_key), "rb") as f:
                return f.read()
        except OSError as e:
            raise AttachmentStoreError(f"Failed to read attachment {storage_key}: {e}") from e

    def delete(self, storage_key: str) -> None:
        """删除附件，文件不存在视为已删除"""
        try:
            os.remove(self._path(storage_key))
        except FileNotFoundError:
            self._logger.debug(f"Attachment {storage_key} already removed")
        except OSError as e:
            raise AttachmentStoreError(f"Failed to delete attachment {storage_key}: {e}") from e

    def _path(self, storage_key: str) -> str:
        # 存储键来自 UUID，拒绝任何路径成分
        if not storage_key or os.path.basename(storage_key) != storage_key or storage_key in (".", ".."):
            raise AttachmentStoreError(f"Invalid storage key: {storage_key!r}")
        return os.path.join(self._base_dir, storage_key)
