"""邮件入库服务"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from domain.common.exceptions import AttachmentStoreError, DuplicateEntityException
from domain.mail.entities.attachment import Attachment
from domain.mail.entities.email import Email
from domain.mail.repositories.attachment_repository import AttachmentRepository
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.services.attachment_store import AttachmentStore
from domain.mail.value_objects.email_folder import EmailFolder
from domain.mail.value_objects.raw_message import RawMessage
from domain.mailbox.entities.mailbox_account import MailboxAccount

UNKNOWN_SENDER = "unknown@unknown.com"
NO_SUBJECT = "(No Subject)"


@dataclass
class IngestResult:
    """
    单封邮件入库结果

    Attributes:
        created: 是否新建
        email: 入库后的邮件（新建或已存在）
        errors: 附件存储等局部错误
    """

    created: bool
    email: Email
    errors: List[str] = field(default_factory=list)


class MessageIngester:
    """
    邮件入库服务

    把 MailboxFetcher 产出的原始邮件规范化为 Email，按 (account_id, message_id) 去重后写入。
    已存在的邮件只做不破坏本地状态的补充；附件逐个交给 AttachmentStore，
    单个附件失败只记录为局部错误。
    """

    def __init__(
        self,
        email_repository: EmailRepository,
        attachment_repository: AttachmentRepository,
        attachment_store: AttachmentStore,
        merge_remote_flags: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            email_repository: 邮件仓储
            attachment_repository: 附件仓储
            attachment_store: 附件存储
            merge_remote_flags: 再次入库时是否采纳远程的已读/加星（只置位不清除）
            logger: 可选的日志记录器
        """
        self._emails = email_repository
        self._attachments = attachment_repository
        self._store = attachment_store
        self._merge_remote_flags = merge_remote_flags
        self._logger = logger or logging.getLogger(__name__)

    def ingest(self, account: MailboxAccount, raw: RawMessage) -> IngestResult:
        """
        入库一封原始邮件

        Args:
            account: 所属邮箱账号
            raw: 原始邮件

        Returns:
            IngestResult

        Raises:
            Exception: 邮件本身无法写入时向上抛出，由调用方计入 skipped
        """
        message_id = self._resolve_message_id(raw)

        existing = self._emails.get_by_message_id(account.id, message_id)
        if existing is not None:
            self._merge(existing, raw)
            return IngestResult(created=False, email=existing)

        email = self._normalize(account, raw, message_id)
        try:
            self._emails.add(email)
        except DuplicateEntityException:
            # 并发的另一轮同步先写入了同一封邮件
            existing = self._emails.get_by_message_id(account.id, message_id)
            if existing is None:
                raise
            self._logger.debug(f"[{account.email}] Email {message_id} inserted concurrently, skipping")
            return IngestResult(created=False, email=existing)

        errors = self._store_attachments(account, email, raw)
        return IngestResult(created=True, email=email, errors=errors)

    def _resolve_message_id(self, raw: RawMessage) -> str:
        if raw.message_id and raw.message_id.strip():
            return raw.message_id.strip()
        if raw.uid:
            return f"uid-{raw.uid}"
        return f"generated-{uuid4()}"

    def _normalize(self, account: MailboxAccount, raw: RawMessage, message_id: str) -> Email:
        folder = EmailFolder.from_remote(raw.folder)
        from_address = (raw.from_address or "").strip() or UNKNOWN_SENDER
        to_addresses = _clean(raw.to_addresses) or [from_address]
        subject = (raw.subject or "").strip() or NO_SUBJECT
        references = _clean(raw.references)
        in_reply_to = (raw.in_reply_to or "").strip() or None

        return Email(
            account_id=account.id,
            message_id=message_id,
            folder=folder,
            from_address=from_address,
            from_name=(raw.from_name or "").strip() or None,
            to_addresses=to_addresses,
            cc_addresses=_clean(raw.cc_addresses),
            bcc_addresses=_clean(raw.bcc_addresses),
            subject=subject,
            body_text=raw.content.text,
            body_html=raw.content.html,
            received_at=raw.received_at or datetime.now(timezone.utc),
            is_read=raw.is_seen or folder == EmailFolder.SENT,
            is_starred=raw.is_flagged,
            is_draft=raw.is_draft or folder == EmailFolder.DRAFTS,
            in_reply_to=in_reply_to,
            references=references,
        )

    def _merge(self, email: Email, raw: RawMessage) -> None:
        """本地状态优先：只补全缺失的会话线索，按配置采纳远程置位的标志"""
        changed = email.fill_threading(
            (raw.in_reply_to or "").strip() or None,
            _clean(raw.references),
        )

        if self._merge_remote_flags:
            if raw.is_seen and not email.is_read:
                email.mark_read()
                changed = True
            if raw.is_flagged and not email.is_starred:
                email.star()
                changed = True

        if changed:
            self._emails.update(email)

    def _store_attachments(self, account: MailboxAccount, email: Email, raw: RawMessage) -> List[str]:
        errors: List[str] = []

        for part in raw.attachments:
            attachment = Attachment.describe(
                email_id=email.id,
                filename=part.filename,
                mime_type=part.mime_type,
                size=part.size,
                content_id=part.content_id,
                content_disposition=part.content_disposition,
            )

            try:
                stored = self._store.put(str(attachment.id), attachment.mime_type, part.content)
                attachment.storage_key = stored.storage_key
            except AttachmentStoreError as e:
                errors.append(f"Failed to store attachment '{attachment.filename}' of {email.message_id}: {e.message}")
                self._logger.error(
                    f"[{account.email}] Failed to store attachment {attachment.filename}: {e.message}"
                )

            self._attachments.add(attachment)

        return errors


def _clean(values) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]
