"""邮箱账号 SQLAlchemy 数据模型"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Boolean, LargeBinary, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from infrastructure.database.types import UtcDateTime


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类"""
    pass


class MailboxAccountModel(Base):
    """
    邮箱账号数据库模型

    对应领域层的 MailboxAccount 聚合根
    """

    __tablename__ = "mailbox_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_mailbox_accounts_user_email"),
    )

    # 主键
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # 所属用户
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # 邮箱基本信息
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)

    # IMAP 配置
    imap_server: Mapped[str] = mapped_column(String(255), nullable=False)
    imap_port: Mapped[int] = mapped_column(Integer, nullable=False, default=993)
    use_ssl: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # 加密密码
    encrypted_password: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    # 同步检查点
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True, index=True)
    sync_cursor: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)

    # 同步租约
    sync_lease_token: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    sync_lease_expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)

    # 同步进度
    sync_progress: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sync_status: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # 时间戳
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)

    # 版本（乐观锁）
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<MailboxAccountModel(id={self.id}, user_id={self.user_id}, email={self.email})>"
