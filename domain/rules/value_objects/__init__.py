"""规则值对象模块"""

from domain.rules.value_objects.rule_conditions import ConditionField, RuleCondition, RuleConditions
from domain.rules.value_objects.rule_actions import RuleActions

__all__ = ["ConditionField", "RuleCondition", "RuleConditions", "RuleActions"]
