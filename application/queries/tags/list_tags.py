"""查询标签的 Query"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ListTagsQuery:
    """查询调用者的全部标签（按名称排序）"""

    user_id: str


@dataclass
class TagItem:
    """标签视图"""

    id: str
    name: str
    color: Optional[str]
    created_at: str


@dataclass
class ListTagsResult:
    success: bool
    data: List[TagItem] = field(default_factory=list)
    message: str = ""
