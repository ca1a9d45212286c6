"""邮箱账号 SQLAlchemy 仓储实现"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.common.exceptions import DuplicateEntityException
from domain.mailbox.entities.mailbox_account import MailboxAccount
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.mailbox.value_objects.imap_config import ImapConfig
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword
from domain.mailbox.value_objects.sync_lease import SyncLease
from infrastructure.mail.models.attachment_model import AttachmentModel
from infrastructure.mail.models.email_model import EmailModel, EmailTagModel
from infrastructure.mailbox.models.mailbox_account_model import MailboxAccountModel
from infrastructure.rules.models.mail_rule_model import MailRuleModel


class SqlAlchemyMailboxAccountRepository(MailboxAccountRepository):
    """
    邮箱账号 SQLAlchemy 仓储实现

    租约原语都是单条带条件的 UPDATE，通过 rowcount 判断是否生效，
    多个进程共享同一数据库时也能保证互斥。
    """

    def __init__(self, session: Session):
        """
        初始化仓储

        Args:
            session: SQLAlchemy Session
        """
        self._session = session

    def add(self, account: MailboxAccount) -> None:
        """添加邮箱账号"""
        model = self._to_model(account)
        self._session.add(model)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            raise DuplicateEntityException("MailboxAccount", f"{account.user_id}/{account.email}")

    def get_by_id(self, account_id: UUID) -> Optional[MailboxAccount]:
        """根据 ID 获取邮箱账号"""
        model = self._session.query(MailboxAccountModel).filter(
            MailboxAccountModel.id == str(account_id)
        ).populate_existing().first()

        if model is None:
            return None

        return self._to_entity(model)

    def exists_for_user(self, user_id: str, email: str) -> bool:
        """检查用户下邮箱地址是否已存在"""
        count = self._session.query(MailboxAccountModel).filter(
            MailboxAccountModel.user_id == user_id,
            MailboxAccountModel.email == email,
        ).count()

        return count > 0

    def list_by_user(self, user_id: str) -> List[MailboxAccount]:
        """获取用户的全部邮箱账号（按创建时间）"""
        models = self._session.query(MailboxAccountModel).filter(
            MailboxAccountModel.user_id == user_id
        ).order_by(MailboxAccountModel.created_at, MailboxAccountModel.id).populate_existing().all()

        return [self._to_entity(model) for model in models]

    def list_ids_by_user(self, user_id: str) -> List[UUID]:
        """获取用户的全部邮箱账号 ID"""
        rows = self._session.execute(
            select(MailboxAccountModel.id).where(MailboxAccountModel.user_id == user_id)
        ).scalars().all()

        return [UUID(row) for row in rows]

    def list_user_ids(self) -> List[str]:
        """获取拥有邮箱账号的全部用户"""
        rows = self._session.execute(
            select(MailboxAccountModel.user_id).distinct().order_by(MailboxAccountModel.user_id)
        ).scalars().all()

        return list(rows)

    def list_due_for_sync(self, cutoff: datetime, now: datetime, limit: int = 100) -> List[MailboxAccount]:
        """获取需要后台同步的账号"""
        models = self._session.query(MailboxAccountModel).filter(
            or_(
                MailboxAccountModel.sync_lease_token.is_(None),
                MailboxAccountModel.sync_lease_expires_at <= now,
            ),
            or_(
                MailboxAccountModel.last_synced_at.is_(None),
                MailboxAccountModel.last_synced_at < cutoff,
            ),
        ).order_by(
            # 从未同步的排在前面
            MailboxAccountModel.last_synced_at.is_not(None),
            MailboxAccountModel.last_synced_at,
        ).limit(limit).populate_existing().all()

        return [self._to_entity(model) for model in models]

    def remove(self, account: MailboxAccount) -> None:
        """移除邮箱账号，级联删除邮件、附件记录、标签关联和账号范围的规则"""
        account_id = str(account.id)
        email_ids = select(EmailModel.id).where(EmailModel.account_id == account_id)

        self._session.execute(delete(AttachmentModel).where(AttachmentModel.email_id.in_(email_ids)))
        self._session.execute(delete(EmailTagModel).where(EmailTagModel.email_id.in_(email_ids)))
        self._session.execute(delete(EmailModel).where(EmailModel.account_id == account_id))
        self._session.execute(delete(MailRuleModel).where(MailRuleModel.account_id == account_id))
        self._session.execute(delete(MailboxAccountModel).where(MailboxAccountModel.id == account_id))
        self._session.commit()

    # ============ 同步租约原语 ============

    def try_acquire_lease(self, account_id: UUID, lease: SyncLease, now: datetime, status: str) -> bool:
        """获取租约：仅当没有租约或租约已过期时生效"""
        result = self._session.execute(
            update(MailboxAccountModel)
            .where(
                MailboxAccountModel.id == str(account_id),
                or_(
                    MailboxAccountModel.sync_lease_token.is_(None),
                    MailboxAccountModel.sync_lease_expires_at <= now,
                ),
            )
            .values(
                sync_lease_token=lease.token,
                sync_lease_expires_at=lease.expires_at,
                sync_progress=0,
                sync_status=status,
            )
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount == 1

    def renew_lease(self, account_id: UUID, lease: SyncLease) -> bool:
        """续期租约：令牌必须匹配"""
        result = self._session.execute(
            update(MailboxAccountModel)
            .where(
                MailboxAccountModel.id == str(account_id),
                MailboxAccountModel.sync_lease_token == lease.token,
            )
            .values(sync_lease_expires_at=lease.expires_at)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount == 1

    def update_sync_progress(self, account_id: UUID, token: str, progress: Optional[int], status: str) -> bool:
        """更新同步进度：令牌必须匹配"""
        result = self._session.execute(
            update(MailboxAccountModel)
            .where(
                MailboxAccountModel.id == str(account_id),
                MailboxAccountModel.sync_lease_token == token,
            )
            .values(sync_progress=progress, sync_status=status)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount == 1

    def release_lease(
        self,
        account_id: UUID,
        token: str,
        finished_at: datetime,
        progress: Optional[int],
        status: str,
        cursor: Optional[datetime] = None,
    ) -> bool:
        """释放租约并写入最终状态：令牌必须匹配"""
        values = {
            "sync_lease_token": None,
            "sync_lease_expires_at": None,
            "sync_progress": progress,
            "sync_status": status,
            "last_synced_at": finished_at,
        }
        if cursor is not None:
            values["sync_cursor"] = cursor

        result = self._session.execute(
            update(MailboxAccountModel)
            .where(
                MailboxAccountModel.id == str(account_id),
                MailboxAccountModel.sync_lease_token == token,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount == 1

    def _to_model(self, entity: MailboxAccount) -> MailboxAccountModel:
        """将领域实体转换为数据模型"""
        return MailboxAccountModel(
            id=str(entity.id),
            user_id=entity.user_id,
            name=entity.name,
            email=entity.email,
            username=entity.username,
            imap_server=entity.imap_config.server if entity.imap_config else "",
            imap_port=entity.imap_config.port if entity.imap_config else 993,
            use_ssl=entity.imap_config.use_ssl if entity.imap_config else True,
            encrypted_password=entity.encrypted_password.encrypted_value if entity.encrypted_password else b"",
            last_synced_at=entity.last_synced_at,
            sync_cursor=entity.sync_cursor,
            sync_lease_token=entity.sync_lease.token,
            sync_lease_expires_at=entity.sync_lease.expires_at,
            sync_progress=entity.sync_progress,
            sync_status=entity.sync_status,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def _to_entity(self, model: MailboxAccountModel) -> MailboxAccount:
        """将数据模型转换为领域实体"""
        imap_config = ImapConfig(
            server=model.imap_server,
            port=model.imap_port,
            use_ssl=model.use_ssl,
        )

        return MailboxAccount(
            id=UUID(model.id),
            user_id=model.user_id,
            name=model.name,
            email=model.email,
            username=model.username,
            imap_config=imap_config,
            encrypted_password=EncryptedPassword.from_stored(model.encrypted_password),
            last_synced_at=model.last_synced_at,
            sync_cursor=model.sync_cursor,
            sync_lease=SyncLease(
                token=model.sync_lease_token,
                expires_at=model.sync_lease_expires_at,
            ),
            sync_progress=model.sync_progress,
            sync_status=model.sync_status,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )
