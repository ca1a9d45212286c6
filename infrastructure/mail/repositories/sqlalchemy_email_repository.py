"""邮件 SQLAlchemy 仓储实现"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import String, cast, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.common.exceptions import DuplicateEntityException
from domain.mail.entities.email import Email
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.value_objects.email_folder import EmailFolder
from domain.rules.value_objects.rule_conditions import ConditionField, RuleConditions
from infrastructure.mail.models.attachment_model import AttachmentModel
from infrastructure.mail.models.email_model import EmailModel, EmailTagModel

# 地址列表是 JSON 数组，按序列化后的文本做子串匹配
_CONDITION_COLUMNS = {
    ConditionField.FROM: (EmailModel.from_address, EmailModel.from_name),
    ConditionField.TO: (cast(EmailModel.to_addresses, String),),
    ConditionField.CC: (cast(EmailModel.cc_addresses, String),),
    ConditionField.BCC: (cast(EmailModel.bcc_addresses, String),),
    ConditionField.SUBJECT: (EmailModel.subject,),
    ConditionField.BODY: (EmailModel.body_text, EmailModel.body_html),
}


def _matching_clauses(account_ids: Sequence[UUID], conditions: RuleConditions) -> list:
    """把规则条件翻译为 WHERE 子句：账号范围 AND 各条件（条件内多列之间 OR）"""
    clauses = [EmailModel.account_id.in_([str(a) for a in account_ids])]
    for condition in conditions.conditions:
        # term 已小写化；autoescape 让 % 和 _ 按字面匹配
        clauses.append(or_(*(
            func.lower(column, type_=String).contains(condition.term, autoescape=True)
            for column in _CONDITION_COLUMNS[condition.field]
        )))
    return clauses


class SqlAlchemyEmailRepository(EmailRepository):
    """
    邮件 SQLAlchemy 仓储实现

    标签关联保存在 email_tags 表中，读取实体时一并加载。
    """

    def __init__(self, session: Session):
        """
        初始化仓储

        Args:
            session: SQLAlchemy Session
        """
        self._session = session

    def add(self, email: Email) -> None:
        """添加邮件记录"""
        self._session.add(self._to_model(email))
        for tag_id in dict.fromkeys(email.tag_ids):
            self._session.add(EmailTagModel(email_id=str(email.id), tag_id=str(tag_id)))
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            raise DuplicateEntityException("Email", f"{email.account_id}/{email.message_id}")

    def get_by_id(self, email_id: UUID) -> Optional[Email]:
        """根据 ID 获取邮件"""
        model = self._session.query(EmailModel).filter(
            EmailModel.id == str(email_id)
        ).populate_existing().first()

        if model is None:
            return None

        return self._to_entities([model])[0]

    def get_by_message_id(self, account_id: UUID, message_id: str) -> Optional[Email]:
        """根据账号内的 Message-ID 获取邮件"""
        model = self._session.query(EmailModel).filter(
            EmailModel.account_id == str(account_id),
            EmailModel.message_id == message_id,
        ).populate_existing().first()

        if model is None:
            return None

        return self._to_entities([model])[0]

    def update(self, email: Email) -> None:
        """更新邮件记录（标签整体替换）"""
        model = self._session.query(EmailModel).filter(
            EmailModel.id == str(email.id)
        ).first()

        if model is None:
            return

        self._update_model(model, email)
        self._session.execute(delete(EmailTagModel).where(EmailTagModel.email_id == str(email.id)))
        for tag_id in dict.fromkeys(email.tag_ids):
            self._session.add(EmailTagModel(email_id=str(email.id), tag_id=str(tag_id)))
        self._session.commit()

    def list_filtered(
        self,
        account_ids: Sequence[UUID],
        folder: Optional[EmailFolder] = None,
        is_read: Optional[bool] = None,
        is_starred: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Email], int]:
        """
        分页筛选查询邮件

        Returns:
            Tuple[items, total_count]: 当前页数据和总数
        """
        if not account_ids:
            return [], 0

        query = self._session.query(EmailModel).filter(
            EmailModel.account_id.in_([str(a) for a in account_ids])
        )

        # 筛选条件
        if folder is not None:
            query = query.filter(EmailModel.folder == folder.value)
        if is_read is not None:
            query = query.filter(EmailModel.is_read == is_read)
        if is_starred is not None:
            query = query.filter(EmailModel.is_starred == is_starred)

        # 总数统计
        total = query.count()

        # 排序（确保分页结果稳定）
        query = query.order_by(EmailModel.received_at.desc(), EmailModel.id)

        models = query.offset(offset).limit(limit).populate_existing().all()
        return self._to_entities(models), total

    def list_by_ids(self, email_ids: Sequence[UUID], account_ids: Sequence[UUID]) -> List[Email]:
        """获取账号范围内的指定邮件"""
        if not email_ids or not account_ids:
            return []

        models = self._session.query(EmailModel).filter(
            EmailModel.id.in_([str(e) for e in email_ids]),
            EmailModel.account_id.in_([str(a) for a in account_ids]),
        ).order_by(EmailModel.id).populate_existing().all()

        return self._to_entities(models)

    def count_matching(self, account_ids: Sequence[UUID], conditions: RuleConditions) -> int:
        """统计满足规则条件的邮件数"""
        if not account_ids or conditions.is_empty:
            return 0

        return self._session.execute(
            select(func.count()).select_from(EmailModel).where(*_matching_clauses(account_ids, conditions))
        ).scalar_one()

    def list_matching_ids(self, account_ids: Sequence[UUID], conditions: RuleConditions) -> List[UUID]:
        """读出满足规则条件的邮件 ID"""
        if not account_ids or conditions.is_empty:
            return []

        ids = self._session.execute(
            select(EmailModel.id)
            .where(*_matching_clauses(account_ids, conditions))
            .order_by(EmailModel.id)
        ).scalars().all()
        return [UUID(i) for i in ids]

    def mark_read(self, email_ids: Sequence[UUID]) -> int:
        """批量标记已读"""
        return self._bulk_update(email_ids, is_read=True)

    def star(self, email_ids: Sequence[UUID]) -> int:
        """批量加星"""
        return self._bulk_update(email_ids, is_starred=True)

    def move_to_folder(self, email_ids: Sequence[UUID], folder: EmailFolder) -> int:
        """批量移动文件夹"""
        return self._bulk_update(email_ids, folder=folder.value)

    def delete_by_ids(self, email_ids: Sequence[UUID]) -> int:
        """彻底删除邮件及其附件记录和标签关联"""
        if not email_ids:
            return 0

        ids = [str(e) for e in email_ids]
        self._session.execute(delete(AttachmentModel).where(AttachmentModel.email_id.in_(ids)))
        self._session.execute(delete(EmailTagModel).where(EmailTagModel.email_id.in_(ids)))
        result = self._session.execute(
            delete(EmailModel).where(EmailModel.id.in_(ids)).execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount

    def add_tags(self, email_ids: Sequence[UUID], tag_ids: Sequence[UUID]) -> int:
        """给邮件打标签，已存在的关联忽略"""
        if not email_ids or not tag_ids:
            return 0

        ids = [str(e) for e in email_ids]
        tags = [str(t) for t in dict.fromkeys(tag_ids)]

        existing_emails = set(self._session.execute(
            select(EmailModel.id).where(EmailModel.id.in_(ids))
        ).scalars().all())
        rows = self._session.execute(
            select(EmailTagModel.email_id, EmailTagModel.tag_id).where(
                EmailTagModel.email_id.in_(ids),
                EmailTagModel.tag_id.in_(tags),
            )
        ).all()
        existing_pairs = {(row.email_id, row.tag_id) for row in rows}

        added = 0
        for email_id in dict.fromkeys(ids):
            if email_id not in existing_emails:
                continue
            for tag_id in tags:
                if (email_id, tag_id) in existing_pairs:
                    continue
                self._session.add(EmailTagModel(email_id=email_id, tag_id=tag_id))
                added += 1

        self._session.commit()
        return added

    def remove_tags(self, email_ids: Sequence[UUID], tag_ids: Sequence[UUID]) -> int:
        """移除邮件上的标签"""
        if not email_ids or not tag_ids:
            return 0

        result = self._session.execute(
            delete(EmailTagModel).where(
                EmailTagModel.email_id.in_([str(e) for e in email_ids]),
                EmailTagModel.tag_id.in_([str(t) for t in tag_ids]),
            )
        )
        self._session.commit()
        return result.rowcount

    def _bulk_update(self, email_ids: Sequence[UUID], **values) -> int:
        if not email_ids:
            return 0

        result = self._session.execute(
            update(EmailModel)
            .where(EmailModel.id.in_([str(e) for e in email_ids]))
            .values(**values, version=EmailModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount

    def _load_tags(self, email_ids: List[str]) -> Dict[str, List[UUID]]:
        tags: Dict[str, List[UUID]] = defaultdict(list)
        if not email_ids:
            return tags

        rows = self._session.execute(
            select(EmailTagModel.email_id, EmailTagModel.tag_id)
            .where(EmailTagModel.email_id.in_(email_ids))
            .order_by(EmailTagModel.email_id, EmailTagModel.tag_id)
        ).all()
        for row in rows:
            tags[row.email_id].append(UUID(row.tag_id))
        return tags

    def _to_entities(self, models: List[EmailModel]) -> List[Email]:
        tags = self._load_tags([m.id for m in models])
        return [self._to_entity(m, tags.get(m.id, [])) for m in models]

    def _to_model(self, entity: Email) -> EmailModel:
        """将领域实体转换为数据模型"""
        return EmailModel(
            id=str(entity.id),
            account_id=str(entity.account_id),
            message_id=entity.message_id,
            folder=entity.folder.value,
            from_address=entity.from_address,
            from_name=entity.from_name,
            to_addresses=list(entity.to_addresses),
            cc_addresses=list(entity.cc_addresses),
            bcc_addresses=list(entity.bcc_addresses),
            subject=entity.subject,
            body_text=entity.body_text,
            body_html=entity.body_html,
            body_size=entity.content.size,
            received_at=entity.received_at,
            is_read=entity.is_read,
            is_starred=entity.is_starred,
            is_draft=entity.is_draft,
            in_reply_to=entity.in_reply_to,
            reference_ids=list(entity.references),
            thread_id=entity.thread_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def _to_entity(self, model: EmailModel, tag_ids: List[UUID]) -> Email:
        """将数据模型转换为领域实体"""
        return Email(
            id=UUID(model.id),
            account_id=UUID(model.account_id),
            message_id=model.message_id,
            folder=EmailFolder(model.folder),
            from_address=model.from_address,
            from_name=model.from_name,
            to_addresses=list(model.to_addresses or []),
            cc_addresses=list(model.cc_addresses or []),
            bcc_addresses=list(model.bcc_addresses or []),
            subject=model.subject,
            body_text=model.body_text,
            body_html=model.body_html,
            received_at=model.received_at,
            is_read=model.is_read,
            is_starred=model.is_starred,
            is_draft=model.is_draft,
            in_reply_to=model.in_reply_to,
            references=list(model.reference_ids or []),
            thread_id=model.thread_id,
            tag_ids=tag_ids,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )

    def _update_model(self, model: EmailModel, entity: Email) -> None:
        """更新数据模型"""
        model.folder = entity.folder.value
        model.from_address = entity.from_address
        model.from_name = entity.from_name
        model.to_addresses = list(entity.to_addresses)
        model.cc_addresses = list(entity.cc_addresses)
        model.bcc_addresses = list(entity.bcc_addresses)
        model.subject = entity.subject
        model.body_text = entity.body_text
        model.body_html = entity.body_html
        model.body_size = entity.content.size
        model.is_read = entity.is_read
        model.is_starred = entity.is_starred
        model.is_draft = entity.is_draft
        model.in_reply_to = entity.in_reply_to
        model.reference_ids = list(entity.references)
        model.thread_id = entity.thread_id
        model.updated_at = entity.updated_at
        model.version = entity.version
