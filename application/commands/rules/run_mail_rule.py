"""执行邮件规则命令"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from application.rules.services.rule_engine import RuleEngine
from domain.common.exceptions import DomainException
from domain.mailbox.repositories.mailbox_account_repository import MailboxAccountRepository
from domain.rules.repositories.mail_rule_repository import MailRuleRepository


@dataclass
class RunMailRuleCommand:
    """对已有邮件执行一条规则

    Attributes:
        user_id: 调用者
        rule_id: 规则 ID
    """

    user_id: str
    rule_id: str


@dataclass
class RunMailRuleResult:
    """命令执行结果

    Attributes:
        success: 是否成功
        rule_id: 规则 ID
        matched_count: 匹配的邮件数
        processed_count: 执行了动作的邮件数
        errors: 转发失败等局部错误
        message: 结果消息
        error_code: 错误代码（失败时有值）
    """

    success: bool
    rule_id: str = ""
    matched_count: int = 0
    processed_count: int = 0
    errors: List[str] = field(default_factory=list)
    message: str = ""
    error_code: Optional[str] = None


class RunMailRuleHandler:
    """执行邮件规则处理器

    规则不必处于启用状态；手动执行只看条件和动作。
    """

    def __init__(
        self,
        rule_repository: MailRuleRepository,
        account_repository: MailboxAccountRepository,
        rule_engine: RuleEngine,
        logger: Optional[logging.Logger] = None,
    ):
        self._rules = rule_repository
        self._accounts = account_repository
        self._engine = rule_engine
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: RunMailRuleCommand) -> RunMailRuleResult:
        """
        处理执行规则命令

        Args:
            command: 执行规则命令

        Returns:
            命令执行结果
        """
        try:
            rule_uuid = UUID(command.rule_id)
        except ValueError:
            rule_uuid = None

        rule = self._rules.get_by_id_for_user(rule_uuid, command.user_id) if rule_uuid else None
        if rule is None:
            return RunMailRuleResult(
                success=False,
                rule_id=command.rule_id,
                message=f"Mail rule with ID '{command.rule_id}' not found",
                error_code="RULE_NOT_FOUND",
            )

        try:
            account_ids = self._accounts.list_ids_by_user(command.user_id)
            application = self._engine.apply_rule(rule, account_ids, command.user_id)
        except DomainException as e:
            return RunMailRuleResult(
                success=False,
                rule_id=command.rule_id,
                message=e.message,
                error_code=e.code,
            )
        except Exception as e:
            self._logger.exception(f"Failed to run rule {command.rule_id}: {e}")
            return RunMailRuleResult(
                success=False,
                rule_id=command.rule_id,
                message=f"Unexpected error: {str(e)}",
                error_code="INTERNAL_ERROR",
            )

        return RunMailRuleResult(
            success=True,
            rule_id=command.rule_id,
            matched_count=application.matched_count,
            processed_count=application.processed_count,
            errors=list(application.errors),
            message=f"Rule applied to {application.processed_count} email(s)",
        )
