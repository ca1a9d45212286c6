"""删除邮件规则命令"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from domain.rules.repositories.mail_rule_repository import MailRuleRepository


@dataclass
class DeleteMailRuleCommand:
    """删除邮件规则命令"""

    user_id: str
    rule_id: str


@dataclass
class DeleteMailRuleResult:
    """命令执行结果"""

    success: bool
    rule_id: str = ""
    message: str = ""
    error_code: Optional[str] = None


class DeleteMailRuleHandler:
    """删除邮件规则处理器（只能删除自己的规则）"""

    def __init__(
        self,
        rule_repository: MailRuleRepository,
        logger: Optional[logging.Logger] = None,
    ):
        self._rules = rule_repository
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, command: DeleteMailRuleCommand) -> DeleteMailRuleResult:
        try:
            rule_uuid = UUID(command.rule_id)
        except ValueError:
            rule_uuid = None

        rule = self._rules.get_by_id_for_user(rule_uuid, command.user_id) if rule_uuid else None
        if rule is None:
            return DeleteMailRuleResult(
                success=False,
                rule_id=command.rule_id,
                message=f"Mail rule with ID '{command.rule_id}' not found",
                error_code="RULE_NOT_FOUND",
            )

        self._rules.remove(rule)
        self._logger.info(f"Mail rule deleted: rule_id={rule.id}, user={command.user_id}")

        return DeleteMailRuleResult(
            success=True,
            rule_id=command.rule_id,
            message=f"Mail rule '{rule.name}' deleted successfully",
        )
