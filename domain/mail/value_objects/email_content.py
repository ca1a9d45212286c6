"""邮件正文值对象"""

from dataclasses import dataclass
from typing import Optional

from domain.common.base_value_object import BaseValueObject


@dataclass(frozen=True)
class EmailContent(BaseValueObject):
    """
    邮件正文

    Attributes:
        text: 纯文本正文
        html: HTML 正文
    """

    text: Optional[str] = None
    html: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.html

    @property
    def size(self) -> int:
        """正文字节数（UTF-8）"""
        return sum(len(part.encode("utf-8")) for part in (self.text, self.html) if part)

    def contains(self, term: str) -> bool:
        """纯文本或 HTML 正文是否包含 term（调用方负责小写化）"""
        return any(term in part.lower() for part in (self.text, self.html) if part)
