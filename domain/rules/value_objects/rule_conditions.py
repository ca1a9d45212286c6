"""规则条件值对象"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException
from domain.mail.entities.email import Email


class ConditionField(str, Enum):
    """
    条件字段

    取值即持久化 JSON 中的键名。
    """

    FROM = "fromContains"
    TO = "toContains"
    CC = "ccContains"
    BCC = "bccContains"
    SUBJECT = "subjectContains"
    BODY = "bodyContains"


# snake_case 别名，API 请求体使用
_FIELD_ALIASES: Dict[str, ConditionField] = {
    "from_contains": ConditionField.FROM,
    "to_contains": ConditionField.TO,
    "cc_contains": ConditionField.CC,
    "bcc_contains": ConditionField.BCC,
    "subject_contains": ConditionField.SUBJECT,
    "body_contains": ConditionField.BODY,
}


@dataclass(frozen=True)
class RuleCondition(BaseValueObject):
    """
    单个字段的包含条件

    term 在创建时已去空白并小写化，匹配时不区分大小写。

    Attributes:
        field: 条件字段
        term: 匹配子串
    """

    field: ConditionField
    term: str

    def validate(self) -> None:
        if not isinstance(self.field, ConditionField):
            raise InvalidValueObjectException(
                value_object_type="RuleCondition",
                value=self.field,
                reason="Unknown condition field"
            )
        if not self.term or self.term != self.term.strip().lower():
            raise InvalidValueObjectException(
                value_object_type="RuleCondition",
                value=self.term,
                reason="Condition term must be a non-empty, trimmed, lower-cased string"
            )

    @classmethod
    def of(cls, field: ConditionField, term: str) -> "RuleCondition":
        return cls(field=field, term=term.strip().lower())

    def matches(self, email: Email) -> bool:
        """判断邮件是否满足本条件"""
        if self.field == ConditionField.FROM:
            return _contains(self.term, email.from_address, email.from_name)
        if self.field == ConditionField.TO:
            return _contains(self.term, *email.to_addresses)
        if self.field == ConditionField.CC:
            return _contains(self.term, *email.cc_addresses)
        if self.field == ConditionField.BCC:
            return _contains(self.term, *email.bcc_addresses)
        if self.field == ConditionField.SUBJECT:
            return _contains(self.term, email.subject)
        return email.content.contains(self.term)


def _contains(term: str, *values: Optional[str]) -> bool:
    return any(term in value.lower() for value in values if value)


@dataclass(frozen=True)
class RuleConditions(BaseValueObject):
    """
    规则条件集合（AND）

    每个字段最多一个条件。空集合不匹配任何邮件。
    """

    conditions: Tuple[RuleCondition, ...] = ()

    def validate(self) -> None:
        fields = [c.field for c in self.conditions]
        if len(fields) != len(set(fields)):
            raise InvalidValueObjectException(
                value_object_type="RuleConditions",
                value=[f.value for f in fields],
                reason="Each condition field may appear only once"
            )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RuleConditions":
        """
        从 JSON 字典解析条件

        接受 camelCase（fromContains）或 snake_case（from_contains）键名；
        空值和空白字符串被忽略，未知键名报错。

        Raises:
            InvalidValueObjectException: 未知字段或非字符串取值
        """
        if not data:
            return cls()

        parsed: Dict[ConditionField, RuleCondition] = {}
        for key, value in data.items():
            field = _FIELD_ALIASES.get(key)
            if field is None:
                try:
                    field = ConditionField(key)
                except ValueError:
                    raise InvalidValueObjectException(
                        value_object_type="RuleConditions",
                        value=key,
                        reason=f"Unknown condition field: {key}"
                    )
            if value is None:
                continue
            if not isinstance(value, str):
                raise InvalidValueObjectException(
                    value_object_type="RuleConditions",
                    value=value,
                    reason=f"Condition '{key}' must be a string"
                )
            if not value.strip():
                continue
            parsed[field] = RuleCondition.of(field, value)

        # 固定顺序，保证序列化稳定
        ordered = tuple(parsed[f] for f in ConditionField if f in parsed)
        return cls(conditions=ordered)

    def to_dict(self) -> Dict[str, str]:
        return {c.field.value: c.term for c in self.conditions}

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def term_for(self, field: ConditionField) -> Optional[str]:
        for condition in self.conditions:
            if condition.field == field:
                return condition.term
        return None

    def matches(self, email: Email) -> bool:
        """所有已指定条件都满足才匹配；没有条件时不匹配"""
        if self.is_empty:
            return False
        return all(condition.matches(email) for condition in self.conditions)
