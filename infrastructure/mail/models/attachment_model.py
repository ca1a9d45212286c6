"""附件 SQLAlchemy 数据模型"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.types import UtcDateTime
from infrastructure.mailbox.models.mailbox_account_model import Base


class AttachmentModel(Base):
    """附件元数据（内容在 AttachmentStore 中）"""

    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    extension: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    storage_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    disposition: Mapped[str] = mapped_column(String(20), nullable=False, default="ATTACHMENT")
    content_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<AttachmentModel(id={self.id}, email_id={self.email_id}, filename={self.filename})>"
