"""邮件规则引擎"""

import html
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from uuid import UUID

from application.mail.services.email_trash_service import EmailTrashService
from domain.common.exceptions import DomainException, MailSendError
from domain.mail.entities.email import Email
from domain.mail.repositories.email_repository import EmailRepository
from domain.mail.repositories.tag_repository import TagRepository
from domain.mail.services.outbound_mail_sender import (
    OutboundMailSender,
    OutboundMessage,
    SmtpProfileProvider,
)
from domain.mail.value_objects.email_folder import EmailFolder
from domain.rules.entities.mail_rule import MailRule
from domain.rules.repositories.mail_rule_repository import MailRuleRepository

FORWARD_SEPARATOR = "---------- Forwarded message ----------"


@dataclass
class RuleApplication:
    """
    规则执行结果

    Attributes:
        matched_count: 匹配的邮件数
        processed_count: 已执行动作的邮件数
        errors: 转发失败等局部错误
    """

    matched_count: int = 0
    processed_count: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class RuleRunResult:
    """
    单封邮件的规则评估结果

    Attributes:
        matched_rule_ids: 按执行顺序排列的命中规则
        errors: 局部错误
    """

    matched_rule_ids: List[UUID] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class RuleEngine:
    """
    邮件规则引擎

    - count_matching：预览，只读
    - apply_rule：一次读出匹配的邮件 ID 集合，再按 ID 分批执行动作
    - run_enabled_rules：对单封邮件按 (priority, name, id) 顺序评估已启用规则，
      命中且 stop_processing 的规则之后不再评估

    预览和执行都由仓储把同一组条件翻译为 SQL，两者看到的邮件集合一致。
    调用方负责授权：传入的 account_ids 必须已属于该用户。
    """

    def __init__(
        self,
        email_repository: EmailRepository,
        mail_rule_repository: MailRuleRepository,
        tag_repository: TagRepository,
        trash_service: EmailTrashService,
        mail_sender: OutboundMailSender,
        smtp_profiles: SmtpProfileProvider,
        batch_size: int = 100,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            email_repository: 邮件仓储
            mail_rule_repository: 规则仓储
            tag_repository: 标签仓储（校验标签归属）
            trash_service: 删除动作
            mail_sender: 转发通道
            smtp_profiles: 默认发信配置
            batch_size: 执行动作时每批邮件数
            logger: 可选的日志记录器
        """
        self._emails = email_repository
        self._rules = mail_rule_repository
        self._tags = tag_repository
        self._trash = trash_service
        self._sender = mail_sender
        self._smtp_profiles = smtp_profiles
        self._batch_size = batch_size
        self._logger = logger or logging.getLogger(__name__)

    @staticmethod
    def resolve_scope(rule: MailRule, account_ids: Sequence[UUID]) -> List[UUID]:
        """规则限定账号时取与授权账号的交集，否则为全部授权账号"""
        authorized = list(dict.fromkeys(account_ids))
        if rule.account_id is not None:
            return [rule.account_id] if rule.account_id in authorized else []
        return authorized

    def find_matching_ids(self, rule: MailRule, account_ids: Sequence[UUID]) -> List[UUID]:
        """
        找出规则匹配的全部邮件 ID

        Args:
            rule: 规则
            account_ids: 授权账号

        Returns:
            匹配的邮件 ID（按 ID 顺序）
        """
        if rule.conditions.is_empty:
            return []

        scope = self.resolve_scope(rule, account_ids)
        if not scope:
            return []

        return self._emails.list_matching_ids(scope, rule.conditions)

    def count_matching(self, rule: MailRule, account_ids: Sequence[UUID]) -> int:
        """预览匹配数量，不修改任何数据"""
        if rule.conditions.is_empty:
            return 0

        scope = self.resolve_scope(rule, account_ids)
        if not scope:
            return 0

        return self._emails.count_matching(scope, rule.conditions)

    def apply_rule(self, rule: MailRule, account_ids: Sequence[UUID], user_id: str) -> RuleApplication:
        """
        对匹配的邮件执行规则动作

        Args:
            rule: 规则
            account_ids: 授权账号
            user_id: 执行者（标签归属和发信配置都按此用户查找）

        Returns:
            RuleApplication
        """
        email_ids = self.find_matching_ids(rule, account_ids)
        if not email_ids:
            return RuleApplication()

        # 转发和删除需要邮件内容与所在文件夹
        scope = self.resolve_scope(rule, account_ids)
        needs_emails = bool(rule.actions.forward_to) or rule.actions.delete

        errors: List[str] = []
        for start in range(0, len(email_ids), self._batch_size):
            chunk = email_ids[start:start + self._batch_size]
            emails = self._emails.list_by_ids(chunk, scope) if needs_emails else []
            errors.extend(self._apply_actions(rule, chunk, emails, user_id))

        self._logger.info(
            f"Rule '{rule.name}' applied to {len(email_ids)} email(s)"
            + (f" with {len(errors)} error(s)" if errors else "")
        )
        return RuleApplication(
            matched_count=len(email_ids),
            processed_count=len(email_ids),
            errors=errors,
        )

    def run_enabled_rules(self, user_id: str, account_ids: Sequence[UUID], email: Email) -> RuleRunResult:
        """
        对一封邮件评估用户已启用的规则

        Args:
            user_id: 邮件所属用户
            account_ids: 授权账号
            email: 邮件

        Returns:
            RuleRunResult
        """
        result = RuleRunResult()
        if email.account_id not in account_ids:
            return result

        rules = sorted(
            (r for r in self._rules.list_enabled_for_account(user_id, email.account_id)
             if r.is_enabled and r.applies_to_account(email.account_id)),
            key=lambda r: (r.priority, r.name, str(r.id)),
        )

        # delete 按评估开始时的文件夹决定移入回收站还是彻底删除，
        # 前一条规则刚移入回收站的邮件不会被后一条规则彻底删除
        current: Optional[Email] = email
        for rule in rules:
            if not rule.conditions.matches(current):
                continue

            result.matched_rule_ids.append(rule.id)
            try:
                result.errors.extend(
                    self._apply_actions(rule, [current.id], [current], user_id, delete_targets=[email])
                )
            except DomainException as e:
                result.errors.append(f"Rule '{rule.name}' failed: {e.message}")
                self._logger.error(f"Rule '{rule.name}' failed on {current.message_id}: {e.message}")

            if rule.stop_processing:
                break

            # 后续规则基于动作执行后的状态
            current = self._emails.get_by_id(current.id)
            if current is None:
                break

        return result

    def _apply_actions(
        self,
        rule: MailRule,
        ids: List[UUID],
        emails: List[Email],
        user_id: str,
        delete_targets: Optional[List[Email]] = None,
    ) -> List[str]:
        actions = rule.actions
        errors: List[str] = []

        if actions.mark_read:
            self._emails.mark_read(ids)
        if actions.star:
            self._emails.star(ids)

        if actions.add_tag_ids:
            owned = self._tags.filter_owned(user_id, actions.add_tag_ids)
            foreign = [t for t in actions.add_tag_ids if t not in owned]
            if foreign:
                errors.append(f"Rule '{rule.name}': skipped {len(foreign)} tag(s) not owned by user")
            if owned:
                self._emails.add_tags(ids, owned)

        if actions.forward_to:
            errors.extend(self._forward(rule, emails, user_id))

        # delete 优先于 archive
        if actions.delete:
            targets = emails if delete_targets is None else delete_targets
            errors.extend(self._trash.delete(targets).errors)
        elif actions.archive:
            self._emails.move_to_folder(ids, EmailFolder.ARCHIVE)

        return errors

    def _forward(self, rule: MailRule, emails: List[Email], user_id: str) -> List[str]:
        profile = self._smtp_profiles.get_default(user_id)
        if profile is None:
            self._logger.warning(f"Rule '{rule.name}': no default SMTP profile, forward skipped")
            return [f"Rule '{rule.name}': forward skipped, no default SMTP profile configured"]

        errors: List[str] = []
        recipients = list(rule.actions.forward_to)
        for email in emails:
            try:
                self._sender.send(profile, build_forward_message(email, recipients))
            except MailSendError as e:
                errors.append(f"Failed to forward {email.message_id}: {e.message}")
                self._logger.error(f"Rule '{rule.name}': failed to forward {email.message_id}: {e.message}")
        return errors


def build_forward_message(email: Email, recipients: List[str]) -> OutboundMessage:
    """构造转发邮件：原邮件头摘要 + 原正文"""
    sender = f"{email.from_name} <{email.from_address}>" if email.from_name else email.from_address
    header_lines = [
        FORWARD_SEPARATOR,
        f"From: {sender}",
        f"Date: {email.received_at.isoformat()}",
        f"Subject: {email.subject}",
        f"To: {', '.join(email.to_addresses)}",
    ]

    text = "\n".join(header_lines) + "\n\n" + (email.body_text or "")

    body_html = None
    if email.body_html:
        body_html = (
            "<br><br>" + "<br>".join(html.escape(line) for line in header_lines)
            + "<br><br>" + email.body_html
        )

    return OutboundMessage(
        to=recipients,
        subject=f"Fwd: {email.subject}",
        text=text,
        html=body_html,
    )
