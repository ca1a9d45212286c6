"""用量快照 SQLAlchemy 数据模型"""

from datetime import datetime

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.types import UtcDateTime
from infrastructure.mailbox.models.mailbox_account_model import Base


class UsageSnapshotModel(Base):
    """每个用户一行，重算时覆盖"""

    __tablename__ = "usage_snapshots"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    account_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    email_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attachment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_body_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_attachment_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    refreshed_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
