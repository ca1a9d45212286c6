"""给邮件打标签 / 移除标签命令"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.repositories.tag_repository import TagRepository
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository


@dataclass
class TagEmailsCommand:
    """
    给一批邮件加上或移除一批标签

    Attributes:
        user_id: 调用者
        email_ids: 邮件 ID（必须全部属于调用者的账号）
        tag_ids: 标签 ID（必须全部属于调用者）
    """

    user_id: str
    email_ids: List[str]
    tag_ids: List[str]


@dataclass
class TagEmailsResult:
    """
    命令执行结果

    Attributes:
        success: 是否成功
        changed: 新增或删除的关联数
        message: 消息
        error_code: 错误码
            - INVALID_ID: ID 格式错误
            - TAG_NOT_FOUND: 有标签不存在或不属于调用者
            - EMAIL_NOT_FOUND: 有邮件不存在或不属于调用者
    """

    success: bool
    changed: int = 0
    message: str = ""
    error_code: Optional[str] = None


class _TagEmailsHandlerBase:
    """校验标签和邮件归属，全部通过才修改"""

    def __init__(
        self,
        account_repository: MailboxAccountRepository,
        email_repository: EmailRepository,
        tag_repository: TagRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._accounts = account_repository
        self._emails = email_repository
        self._tags = tag_repository
        self._logger = logger or logging.getLogger(__name__)

    def _resolve(self, command: TagEmailsCommand) -> Tuple[Optional[TagEmailsResult], List[UUID], List[UUID]]:
        try:
            email_ids = list(dict.fromkeys(UUID(i) for i in command.email_ids))
            tag_ids = list(dict.fromkeys(UUID(i) for i in command.tag_ids))
        except ValueError:
            return TagEmailsResult(success=False, message="Invalid ID format", error_code="INVALID_ID"), [], []

        if len(self._tags.filter_owned(command.user_id, tag_ids)) != len(tag_ids):
            return TagEmailsResult(
                success=False,
                message="One or more tags not found",
                error_code="TAG_NOT_FOUND",
            ), [], []

        account_ids = self._accounts.list_ids_by_user(command.user_id)
        found = self._emails.list_by_ids(email_ids, account_ids) if account_ids and email_ids else []
        if len(found) != len(email_ids):
            return TagEmailsResult(
                success=False,
                message="One or more emails not found",
                error_code="EMAIL_NOT_FOUND",
            ), [], []

        return None, email_ids, tag_ids


class AddTagsToEmailsHandler(_TagEmailsHandlerBase):
    """给邮件打标签，已有的关联忽略"""

    def handle(self, command: TagEmailsCommand) -> TagEmailsResult:
        failure, email_ids, tag_ids = self._resolve(command)
        if failure is not None:
            return failure

        added = self._emails.add_tags(email_ids, tag_ids)
        self._logger.info(f"Tagged {len(email_ids)} email(s) for {command.user_id}: {added} new link(s)")

        return TagEmailsResult(success=True, changed=added, message=f"Added {added} tag link(s)")


class RemoveTagsFromEmailsHandler(_TagEmailsHandlerBase):
    """移除邮件上的标签"""

    def handle(self, command: TagEmailsCommand) -> TagEmailsResult:
        failure, email_ids, tag_ids = self._resolve(command)
        if failure is not None:
            return failure

        removed = self._emails.remove_tags(email_ids, tag_ids)
        self._logger.info(f"Untagged {len(email_ids)} email(s) for {command.user_id}: {removed} link(s) removed")

        return TagEmailsResult(success=True, changed=removed, message=f"Removed {removed} tag link(s)")
