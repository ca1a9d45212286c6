"""SMTP 账号 SQLAlchemy 仓储实现"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from domain.mail.entities.smtp_account import SmtpAccount
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword
from infrastructure.mail.models.smtp_account_model import SmtpAccountModel


class SqlAlchemySmtpAccountRepository(SmtpAccountRepository):
    """
    SMTP 账号仓储实现

    取消其他默认账号与写入新默认账号在同一事务中提交。
    """

    def __init__(self, session: Session):
        self._session = session

    def add(self, account: SmtpAccount) -> None:
        """添加账号"""
        if account.is_default:
            self._clear_default(account.user_id)
        self._session.add(self._to_model(account))
        self._session.commit()

    def get_by_id_for_user(self, account_id: UUID, user_id: str) -> Optional[SmtpAccount]:
        model = self._session.query(SmtpAccountModel).filter(
            SmtpAccountModel.id == str(account_id),
            SmtpAccountModel.user_id == user_id,
        ).populate_existing().first()

        return self._to_entity(model) if model is not None else None

    def list_by_user(self, user_id: str) -> List[SmtpAccount]:
        models = self._session.query(SmtpAccountModel).filter(
            SmtpAccountModel.user_id == user_id
        ).order_by(SmtpAccountModel.created_at, SmtpAccountModel.id).populate_existing().all()

        return [self._to_entity(m) for m in models]

    def get_default(self, user_id: str) -> Optional[SmtpAccount]:
        model = self._session.query(SmtpAccountModel).filter(
            SmtpAccountModel.user_id == user_id,
            SmtpAccountModel.is_default.is_(True),
        ).populate_existing().first()

        return self._to_entity(model) if model is not None else None

    def set_default(self, account: SmtpAccount) -> None:
        """把账号设为默认"""
        self._clear_default(account.user_id)
        self._session.execute(
            update(SmtpAccountModel)
            .where(SmtpAccountModel.id == str(account.id))
            .values(is_default=True, version=SmtpAccountModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        account.is_default = True

    def remove(self, account: SmtpAccount) -> None:
        self._session.execute(delete(SmtpAccountModel).where(SmtpAccountModel.id == str(account.id)))
        self._session.commit()

    def _clear_default(self, user_id: str) -> None:
        self._session.execute(
            update(SmtpAccountModel)
            .where(SmtpAccountModel.user_id == user_id, SmtpAccountModel.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )

    def _to_model(self, entity: SmtpAccount) -> SmtpAccountModel:
        """将领域实体转换为数据模型"""
        return SmtpAccountModel(
            id=str(entity.id),
            user_id=entity.user_id,
            name=entity.name,
            email=entity.email,
            alias=entity.alias,
            host=entity.host,
            port=entity.port,
            username=entity.username,
            encrypted_password=entity.encrypted_password.encrypted_value if entity.encrypted_password else b"",
            use_ssl=entity.use_ssl,
            is_default=entity.is_default,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def _to_entity(self, model: SmtpAccountModel) -> SmtpAccount:
        """将数据模型转换为领域实体"""
        return SmtpAccount(
            id=UUID(model.id),
            user_id=model.user_id,
            name=model.name,
            email=model.email,
            alias=model.alias,
            host=model.host,
            port=model.port,
            username=model.username,
            encrypted_password=EncryptedPassword.from_stored(model.encrypted_password),
            use_ssl=model.use_ssl,
            is_default=model.is_default,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )
