"""查询邮件规则的 Query"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ListMailRulesQuery:
    """查询调用者的全部规则（按 priority、name 排序）"""

    user_id: str


@dataclass
class GetMailRuleQuery:
    """查询单条规则"""

    user_id: str
    rule_id: str


@dataclass
class MailRuleItem:
    """规则视图"""

    id: str
    name: str
    description: Optional[str]
    account_id: Optional[str]
    conditions: Dict[str, str]
    actions: Dict[str, Any]
    is_enabled: bool
    priority: int
    stop_processing: bool
    created_at: str
    updated_at: str


@dataclass
class MailRulesResult:
    """
    规则查询结果

    Attributes:
        success: 是否成功
        data: 规则列表（单条查询时至多一项）
        message: 消息
        error_code: 错误码（RULE_NOT_FOUND）
    """

    success: bool
    data: List[MailRuleItem] = field(default_factory=list)
    message: str = ""
    error_code: Optional[str] = None
