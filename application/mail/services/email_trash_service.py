"""邮件删除服务"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from uuid import UUID

from domain.common.exceptions import AttachmentStoreError
from domain.mail.entities.email import Email
from domain.mail.repositories.attachment_repository import AttachmentRepository
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.services.attachment_store import AttachmentStore
from domain.mail.value_objects.email_folder import EmailFolder


@dataclass
class TrashOutcome:
    """
    删除结果

    Attributes:
        moved: 移入回收站的数量
        destroyed: 彻底删除的数量
        errors: 附件清理失败等
    """

    moved: int = 0
    destroyed: int = 0
    errors: List[str] = field(default_factory=list)


class EmailTrashService:
    """
    邮件删除

    不在回收站的邮件移入回收站；已在回收站的邮件彻底删除，并清理附件内容。
    用户删除和规则的 delete 动作共用这一实现。
    """

    def __init__(
        self,
        email_repository: EmailRepository,
        attachment_repository: AttachmentRepository,
        attachment_store: AttachmentStore,
        logger: Optional[logging.Logger] = None,
    ):
        self._emails = email_repository
        self._attachments = attachment_repository
        self._store = attachment_store
        self._logger = logger or logging.getLogger(__name__)

    def delete(self, emails: Sequence[Email]) -> TrashOutcome:
        """
        删除邮件

        Args:
            emails: 待删除邮件（以传入时的文件夹状态为准）

        Returns:
            TrashOutcome
        """
        outcome = TrashOutcome()

        to_move = [e.id for e in emails if not e.is_in_trash]
        to_destroy = [e.id for e in emails if e.is_in_trash]

        if to_move:
            outcome.moved = self._emails.move_to_folder(to_move, EmailFolder.TRASH)
        if to_destroy:
            outcome.destroyed = self._destroy(to_destroy, outcome.errors)

        return outcome

    def _destroy(self, email_ids: List[UUID], errors: List[str]) -> int:
        storage_keys = [
            a.storage_key for a in self._attachments.list_by_email_ids(email_ids)
            if a.storage_key is not None
        ]

        destroyed = self._emails.delete_by_ids(email_ids)

        for key in storage_keys:
            try:
                self._store.delete(key)
            except AttachmentStoreError as e:
                errors.append(f"Failed to delete attachment content {key}: {e.message}")
                self._logger.warning(f"Failed to delete attachment content {key}: {e.message}")

        return destroyed
