"""用量 SQLAlchemy 仓储实现"""

from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from domain.common.base_entity import utc_now
from domain.usage.repositories.usage_repository import UsageRepository
from domain.usage.value_objects.usage_snapshot import UsageSnapshot
from infrastructure.mail.models.attachment_model import AttachmentModel
from infrastructure.mail.models.email_model import EmailModel
from infrastructure.mailbox.models.mailbox_account_model import MailboxAccountModel
from infrastructure.usage.models.usage_snapshot_model import UsageSnapshotModel


class SqlAlchemyUsageRepository(UsageRepository):
    """用量统计与快照读写"""

    def __init__(self, session: Session, clock: Optional[Callable] = None):
        self._session = session
        self._clock = clock or utc_now

    def compute(self, user_id: str) -> UsageSnapshot:
        """聚合查询用户的账号、邮件和附件"""
        account_ids = select(MailboxAccountModel.id).where(MailboxAccountModel.user_id == user_id)
        email_ids = select(EmailModel.id).where(EmailModel.account_id.in_(account_ids))

        account_count = self._session.execute(
            select(func.count()).select_from(MailboxAccountModel).where(MailboxAccountModel.user_id == user_id)
        ).scalar_one()

        email_count, body_bytes = self._session.execute(
            select(func.count(EmailModel.id), func.coalesce(func.sum(EmailModel.body_size), 0))
            .where(EmailModel.account_id.in_(account_ids))
        ).one()

        attachment_count, attachment_bytes = self._session.execute(
            select(func.count(AttachmentModel.id), func.coalesce(func.sum(AttachmentModel.size), 0))
            .where(AttachmentModel.email_id.in_(email_ids))
        ).one()

        return UsageSnapshot(
            user_id=user_id,
            account_count=int(account_count),
            email_count=int(email_count),
            attachment_count=int(attachment_count),
            total_body_size_bytes=int(body_bytes),
            total_attachment_size_bytes=int(attachment_bytes),
            refreshed_at=self._clock(),
        )

    def save(self, snapshot: UsageSnapshot) -> None:
        """写入（覆盖）快照"""
        model = self._session.get(UsageSnapshotModel, snapshot.user_id)
        if model is None:
            model = UsageSnapshotModel(user_id=snapshot.user_id)
            self._session.add(model)

        model.account_count = snapshot.account_count
        model.email_count = snapshot.email_count
        model.attachment_count = snapshot.attachment_count
        model.total_body_size_bytes = snapshot.total_body_size_bytes
        model.total_attachment_size_bytes = snapshot.total_attachment_size_bytes
        model.refreshed_at = snapshot.refreshed_at
        self._session.commit()

    def get(self, user_id: str) -> Optional[UsageSnapshot]:
        """读取最近一次快照"""
        model = self._session.get(UsageSnapshotModel, user_id, populate_existing=True)
        if model is None:
            return None

        return UsageSnapshot(
            user_id=model.user_id,
            account_count=model.account_count,
            email_count=model.email_count,
            attachment_count=model.attachment_count,
            total_body_size_bytes=model.total_body_size_bytes,
            total_attachment_size_bytes=model.total_attachment_size_bytes,
            refreshed_at=model.refreshed_at,
        )
