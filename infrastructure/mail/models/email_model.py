"""邮件 SQLAlchemy 数据模型"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, String, Text, Boolean, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.types import UtcDateTime
from infrastructure.mailbox.models.mailbox_account_model import Base


class EmailModel(Base):
    """
    邮件数据库模型

    对应领域层的 Email 实体，(account_id, message_id) 唯一
    """

    __tablename__ = "emails"
    __table_args__ = (
        UniqueConstraint("account_id", "message_id", name="uq_emails_account_message"),
    )

    # 主键
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # 关联邮箱账号
    account_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # 邮件标识
    message_id: Mapped[str] = mapped_column(String(512), nullable=False)
    folder: Mapped[str] = mapped_column(String(20), nullable=False, default="INBOX", index=True)

    # 地址
    from_address: Mapped[str] = mapped_column(String(512), nullable=False)
    from_name: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    to_addresses: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    cc_addresses: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    bcc_addresses: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # 邮件信息
    subject: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    body_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body_html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # 时间
    received_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, index=True)

    # 本地标志
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_starred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # 会话线索
    in_reply_to: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    reference_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    thread_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True, index=True)

    # 时间戳
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)

    # 版本（乐观锁）
    version: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        message_id_display = (self.message_id[:30] + "...") if self.message_id and len(self.message_id) > 30 else (self.message_id or "")
        subject_display = (self.subject[:30] + "...") if self.subject and len(self.subject) > 30 else (self.subject or "")
        return f"<EmailModel(id={self.id}, message_id={message_id_display}, subject={subject_display})>"


class EmailTagModel(Base):
    """邮件与标签的关联"""

    __tablename__ = "email_tags"

    email_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tag_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)
