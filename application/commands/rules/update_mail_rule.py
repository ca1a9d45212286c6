"""修改邮件规则命令"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from application.commands.rules.create_mail_rule import resolve_owned_account
from domain.common.exceptions import DomainException
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.rules.repositories.mail_rule_repository import MailRuleRepository
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions


@dataclass
class UpdateMailRuleCommand:
    """修改邮件规则命令

    值为 None 的字段保持不变。

    Attributes:
        user_id: 调用者
        rule_id: 规则 ID
        name / description / conditions / actions / is_enabled / priority / stop_processing:
            新值
        account_id: 新的限定账号
        all_accounts: 为 True 时取消账号限定（忽略 account_id）
    """

    user_id: str
    rule_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    conditions: Optional[Dict[str, Any]] = None
    actions: Optional[Dict[str, Any]] = None
    account_id: Optional[str] = None
    all_accounts: bool = False
    is_enabled: Optional[bool] = None
    priority: Optional[int] = None
    stop_processing: Optional[bool] = None


@dataclass
class UpdateMailRuleResult:
    """命令执行结果"""

    success: bool
    rule_id: str = ""
    message: str = ""
    error_code: Optional[str] = None


class UpdateMailRuleHandler:
    """修改邮件规则处理器"""

    def __init__(
        self,
        rule_repository: MailRuleRepository,
        account_repository: MailboxAccountRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._rules = rule_repository
        self._accounts = account_repository
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: UpdateMailRuleCommand) -> UpdateMailRuleResult:
        """
        处理修改规则命令

        Args:
            command: 修改规则命令

        Returns:
            命令执行结果
        """
        not_found = UpdateMailRuleResult(
            success=False,
            rule_id=command.rule_id,
            message=f"Mail rule with ID '{command.rule_id}' not found",
            error_code="RULE_NOT_FOUND",
        )
        try:
            rule_uuid = UUID(command.rule_id)
        except ValueError:
            return not_found

        rule = self._rules.get_by_id_for_user(rule_uuid, command.user_id)
        if rule is None:
            return not_found

        changes: Dict[str, Any] = {
            "name": command.name,
            "description": command.description,
            "is_enabled": command.is_enabled,
            "priority": command.priority,
            "stop_processing": command.stop_processing,
        }

        if command.all_accounts:
            changes["account_id"] = None
        elif command.account_id is not None:
            try:
                changes["account_id"] = resolve_owned_account(
                    self._accounts, command.user_id, command.account_id
                )
            except LookupError:
                return UpdateMailRuleResult(
                    success=False,
                    rule_id=command.rule_id,
                    message=f"Mailbox account with ID '{command.account_id}' not found",
                    error_code="ACCOUNT_NOT_FOUND",
                )

        try:
            if command.conditions is not None:
                changes["conditions"] = RuleConditions.from_dict(command.conditions)
            if command.actions is not None:
                changes["actions"] = RuleActions.from_dict(command.actions)

            rule.revise(**changes)
            self._rules.update(rule)
        except DomainException as e:
            return UpdateMailRuleResult(
                success=False,
                rule_id=command.rule_id,
                message=e.message,
                error_code=e.code,
            )

        self._logger.info(f"Mail rule updated: rule_id={rule.id}, user={command.user_id}")

        return UpdateMailRuleResult(
            success=True,
            rule_id=command.rule_id,
            message="Mail rule updated successfully",
        )
