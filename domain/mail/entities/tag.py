"""标签实体"""

from dataclasses import dataclass, field
from typing import Optional

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException


@dataclass(eq=False)
class Tag(BaseEntity):
    """用户自定义标签，仅在本地存在"""

    user_id: str = field(default="")
    name: str = field(default="")
    color: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if not self.user_id or not self.name.strip():
            raise InvalidOperationException(
                operation="create_tag",
                reason="Tag requires a user and a non-empty name"
            )
