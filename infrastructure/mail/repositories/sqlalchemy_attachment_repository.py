"""附件 SQLAlchemy 仓储实现"""

from typing import List, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from domain.mail.entities.attachment import Attachment, AttachmentDisposition
from domain.mail.repositories.attachment_repository import AttachmentRepository
from infrastructure.mail.models.attachment_model import AttachmentModel


class SqlAlchemyAttachmentRepository(AttachmentRepository):
    """附件元数据仓储实现"""

    def __init__(self, session: Session):
        self._session = session

    def add(self, attachment: Attachment) -> None:
        """添加附件记录"""
        self._session.add(self._to_model(attachment))
        self._session.commit()

    def list_by_email_ids(self, email_ids: Sequence[UUID]) -> List[Attachment]:
        """获取多封邮件的附件"""
        if not email_ids:
            return []

        models = self._session.query(AttachmentModel).filter(
            AttachmentModel.email_id.in_([str(e) for e in email_ids])
        ).order_by(AttachmentModel.email_id, AttachmentModel.created_at).all()

        return [self._to_entity(model) for model in models]

    def _to_model(self, entity: Attachment) -> AttachmentModel:
        return AttachmentModel(
            id=str(entity.id),
            email_id=str(entity.email_id),
            filename=entity.filename,
            mime_type=entity.mime_type,
            extension=entity.extension,
            size=entity.size,
            storage_key=entity.storage_key,
            disposition=entity.disposition.value,
            content_id=entity.content_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def _to_entity(self, model: AttachmentModel) -> Attachment:
        return Attachment(
            id=UUID(model.id),
            email_id=UUID(model.email_id),
            filename=model.filename,
            mime_type=model.mime_type,
            extension=model.extension,
            size=model.size,
            storage_key=model.storage_key,
            disposition=AttachmentDisposition(model.disposition),
            content_id=model.content_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )
