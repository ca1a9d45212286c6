"""邮件规则实体"""

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions


@dataclass(eq=False)
class MailRule(BaseEntity):
    """
    邮件规则

    条件和动作在创建/修改时完成校验，评估阶段不再解析。

    Attributes:
        user_id: 所属用户
        account_id: 限定的邮箱账号，None 表示用户的全部账号
        name: 规则名称
        description: 描述
        conditions: 条件集合（AND）
        actions: 动作集合
        is_enabled: 是否启用
        priority: 优先级，越小越先执行
        stop_processing: 匹配后停止评估后续规则
    """

    user_id: str = field(default="")
    account_id: Optional[UUID] = field(default=None)
    name: str = field(default="")
    description: Optional[str] = field(default=None)
    conditions: RuleConditions = field(default_factory=RuleConditions)
    actions: RuleActions = field(default=None)  # type: ignore
    is_enabled: bool = field(default=True)
    priority: int = field(default=0)
    stop_processing: bool = field(default=False)

    def __post_init__(self) -> None:
        """初始化后验证"""
        self._validate()

    def _validate(self) -> None:
        if not self.user_id:
            raise InvalidOperationException(
                operation="create_mail_rule",
                reason="User ID cannot be empty"
            )
        if not self.name or not self.name.strip():
            raise InvalidOperationException(
                operation="create_mail_rule",
                reason="Rule name cannot be empty"
            )
        if self.actions is None:
            raise InvalidOperationException(
                operation="create_mail_rule",
                reason="Rule actions are required"
            )
        if self.priority < 0:
            raise InvalidOperationException(
                operation="create_mail_rule",
                reason=f"Priority cannot be negative: {self.priority}"
            )

    @classmethod
    def create(
        cls,
        user_id: str,
        name: str,
        conditions: RuleConditions,
        actions: RuleActions,
        account_id: Optional[UUID] = None,
        description: Optional[str] = None,
        is_enabled: bool = True,
        priority: int = 0,
        stop_processing: bool = False,
        id: Optional[UUID] = None,
    ) -> "MailRule":
        """
        工厂方法：创建规则

        Returns:
            MailRule 实例
        """
        kwargs = {
            "user_id": user_id,
            "account_id": account_id,
            "name": name.strip(),
            "description": description,
            "conditions": conditions,
            "actions": actions,
            "is_enabled": is_enabled,
            "priority": priority,
            "stop_processing": stop_processing,
        }

        if id is not None:
            kwargs["id"] = id

        return cls(**kwargs)

    def revise(self, **changes) -> None:
        """
        修改规则字段并重新校验

        Args:
            **changes: 要修改的字段（值为 None 的被忽略，account_id 除外）

        Raises:
            InvalidOperationException: 修改后规则无效（原值保持不变）
        """
        allowed = {
            "account_id", "name", "description", "conditions", "actions",
            "is_enabled", "priority", "stop_processing",
        }
        unknown = set(changes) - allowed
        if unknown:
            raise InvalidOperationException(
                operation="update_mail_rule",
                reason=f"Unknown fields: {', '.join(sorted(unknown))}"
            )

        snapshot = {name: getattr(self, name) for name in allowed}
        for name, value in changes.items():
            if value is None and name != "account_id":
                continue
            setattr(self, name, value.strip() if name == "name" else value)

        try:
            self._validate()
        except InvalidOperationException:
            for name, value in snapshot.items():
                setattr(self, name, value)
            raise

        self.update_timestamp()

    def applies_to_account(self, account_id: UUID) -> bool:
        return self.account_id is None or self.account_id == account_id
