"""创建邮件规则命令"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import UUID

from domain.common.exceptions import DomainException
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.rules.entities.mail_rule import MailRule
from domain.rules.repositories.mail_rule_repository import MailRuleRepository
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions


@dataclass
class CreateMailRuleCommand:
    """创建邮件规则命令

    Attributes:
        user_id: 调用者
        name: 规则名称
        conditions: 条件，如 {"fromContains": "boss"}
        actions: 动作，如 {"star": true, "addTagIds": [...]}
        account_id: 限定账号（必须属于调用者），None 表示全部账号
        description: 描述
        is_enabled: 是否启用
        priority: 优先级，越小越先执行
        stop_processing: 命中后停止评估后续规则
    """

    user_id: str
    name: str
    conditions: Dict[str, Any] = field(default_factory=dict)
    actions: Dict[str, Any] = field(default_factory=dict)
    account_id: Optional[str] = None
    description: Optional[str] = None
    is_enabled: bool = True
    priority: int = 0
    stop_processing: bool = False


@dataclass
class CreateMailRuleResult:
    """命令执行结果

    Attributes:
        success: 是否成功
        rule_id: 新规则 ID（成功时有值）
        message: 结果消息
        error_code: 错误代码（失败时有值）
    """

    success: bool
    rule_id: Optional[str] = None
    message: str = ""
    error_code: Optional[str] = None


def resolve_owned_account(
    accounts: MailboxAccountRepository,
    user_id: str,
    account_id: Optional[str],
) -> Optional[UUID]:
    """
    解析并校验规则的限定账号

    Returns:
        账号 UUID，未限定时为 None

    Raises:
        LookupError: 账号 ID 无效或不属于调用者
    """
    if account_id is None:
        return None
    try:
        account_uuid = UUID(account_id)
    except ValueError:
        raise LookupError(account_id) from None

    account = accounts.get_by_id(account_uuid)
    if account is None or account.user_id != user_id:
        raise LookupError(account_id)
    return account_uuid


class CreateMailRuleHandler:
    """创建邮件规则处理器

    1. 校验限定账号属于调用者
    2. 解析条件和动作（无效的直接拒绝）
    3. 保存规则
    """

    def __init__(
        self,
        rule_repository: MailRuleRepository,
        account_repository: MailboxAccountRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._rules = rule_repository
        self._accounts = account_repository
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: CreateMailRuleCommand) -> CreateMailRuleResult:
        """
        处理创建规则命令

        Args:
            command: 创建规则命令

        Returns:
            命令执行结果
        """
        try:
            account_uuid = resolve_owned_account(self._accounts, command.user_id, command.account_id)
        except LookupError:
            return CreateMailRuleResult(
                success=False,
                message=f"Mailbox account with ID '{command.account_id}' not found",
                error_code="ACCOUNT_NOT_FOUND",
            )

        try:
            rule = MailRule.create(
                user_id=command.user_id,
                name=command.name,
                conditions=RuleConditions.from_dict(command.conditions),
                actions=RuleActions.from_dict(command.actions),
                account_id=account_uuid,
                description=command.description,
                is_enabled=command.is_enabled,
                priority=command.priority,
                stop_processing=command.stop_processing,
            )
            self._rules.add(rule)
        except DomainException as e:
            return CreateMailRuleResult(
                success=False,
                message=e.message,
                error_code=e.code,
            )

        self._logger.info(f"Mail rule created: rule_id={rule.id}, user={command.user_id}, name={rule.name}")

        return CreateMailRuleResult(
            success=True,
            rule_id=str(rule.id),
            message="Mail rule created successfully",
        )
