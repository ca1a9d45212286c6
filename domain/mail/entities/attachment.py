"""附件实体"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException


class AttachmentDisposition(str, Enum):
    """附件呈现方式"""

    INLINE = "INLINE"
    ATTACHMENT = "ATTACHMENT"


DEFAULT_FILENAME = "untitled"
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(eq=False)
class Attachment(BaseEntity):
    """
    邮件附件元数据

    附件内容保存在 AttachmentStore 中，storage_key 等于附件 ID；
    存储失败时 storage_key 为 None，记录仍然保留（不可下载）。

    Attributes:
        email_id: 所属邮件
        filename: 文件名
        mime_type: MIME 类型
        extension: 扩展名（小写，不含点）
        size: 字节数
        storage_key: 存储键
        disposition: INLINE 或 ATTACHMENT
        content_id: Content-ID
    """

    email_id: UUID = field(default=None)  # type: ignore
    filename: str = field(default=DEFAULT_FILENAME)
    mime_type: str = field(default=DEFAULT_MIME_TYPE)
    extension: Optional[str] = field(default=None)
    size: int = field(default=0)
    storage_key: Optional[str] = field(default=None)
    disposition: AttachmentDisposition = field(default=AttachmentDisposition.ATTACHMENT)
    content_id: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if self.email_id is None:
            raise InvalidOperationException(
                operation="create_attachment",
                reason="Email ID cannot be None"
            )
        if self.size < 0:
            raise InvalidOperationException(
                operation="create_attachment",
                reason=f"Attachment size cannot be negative: {self.size}"
            )

    @classmethod
    def describe(
        cls,
        email_id: UUID,
        filename: Optional[str],
        mime_type: Optional[str],
        size: int,
        content_id: Optional[str] = None,
        content_disposition: Optional[str] = None,
    ) -> "Attachment":
        """
        从原始附件部分生成元数据（尚未存储）

        有 Content-ID 或 disposition 为 inline 时视为内联附件。
        """
        name = (filename or "").strip() or DEFAULT_FILENAME
        extension = None
        if "." in name:
            extension = name.rsplit(".", 1)[-1].lower() or None

        inline = (content_disposition or "").lower() == "inline" or bool(content_id)

        return cls(
            email_id=email_id,
            filename=name,
            mime_type=(mime_type or "").strip() or DEFAULT_MIME_TYPE,
            extension=extension,
            size=size,
            disposition=AttachmentDisposition.INLINE if inline else AttachmentDisposition.ATTACHMENT,
            content_id=content_id,
        )

    @property
    def is_available(self) -> bool:
        """内容已成功存储"""
        return self.storage_key is not None
