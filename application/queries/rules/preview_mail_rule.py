"""预览邮件规则的 Query"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PreviewMailRuleQuery:
    """
    统计规则会匹配多少封现有邮件（只读）

    Attributes:
        user_id: 调用者
        rule_id: 规则 ID
    """

    user_id: str
    rule_id: str


@dataclass
class PreviewMailRuleResult:
    """预览结果"""

    success: bool
    rule_id: str = ""
    matched_count: int = 0
    message: str = ""
    error_code: Optional[str] = None
