"""标签 SQLAlchemy 仓储实现"""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.common.exceptions import DuplicateEntityException
from domain.mail.entities.tag import Tag
from domain.mail.repositories.tag_repository import TagRepository
from infrastructure.mail.models.email_model import EmailTagModel
from infrastructure.mail.models.tag_model import TagModel


class SqlAlchemyTagRepository(TagRepository):
    """标签仓储实现"""

    def __init__(self, session: Session):
        self._session = session

    def add(self, tag: Tag) -> None:
        """添加标签"""
        self._session.add(TagModel(
            id=str(tag.id),
            user_id=tag.user_id,
            name=tag.name,
            color=tag.color,
            created_at=tag.created_at,
            updated_at=tag.updated_at,
            version=tag.version,
        ))
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            raise DuplicateEntityException("Tag", f"{tag.user_id}/{tag.name}")

    def get_by_id_for_user(self, tag_id: UUID, user_id: str) -> Optional[Tag]:
        """获取属于该用户的标签"""
        model = self._session.query(TagModel).filter(
            TagModel.id == str(tag_id),
            TagModel.user_id == user_id,
        ).first()

        return self._to_entity(model) if model is not None else None

    def remove(self, tag: Tag) -> None:
        """删除标签，同时删除它在 email_tags 中的关联"""
        self._session.execute(delete(EmailTagModel).where(EmailTagModel.tag_id == str(tag.id)))
        self._session.execute(delete(TagModel).where(TagModel.id == str(tag.id)))
        self._session.commit()

    def list_by_user(self, user_id: str) -> List[Tag]:
        """获取用户的全部标签（按名称）"""
        models = self._session.query(TagModel).filter(
            TagModel.user_id == user_id
        ).order_by(TagModel.name).all()

        return [self._to_entity(m) for m in models]

    def filter_owned(self, user_id: str, tag_ids: Sequence[UUID]) -> List[UUID]:
        """过滤出属于该用户的标签 ID"""
        if not tag_ids:
            return []

        owned = set(self._session.execute(
            select(TagModel.id).where(
                TagModel.user_id == user_id,
                TagModel.id.in_([str(t) for t in tag_ids]),
            )
        ).scalars().all())

        return [t for t in dict.fromkeys(tag_ids) if str(t) in owned]

    def _to_entity(self, model: TagModel) -> Tag:
        """将数据模型转换为领域实体"""
        return Tag(
            id=UUID(model.id),
            user_id=model.user_id,
            name=model.name,
            color=model.color,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )
