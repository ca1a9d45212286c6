"""规则动作值对象"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
from uuid import UUID

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException

_ADDRESS_RE = re.compile(r"^[^@\s,;<>]+@[^@\s,;<>]+\.[^@\s,;<>]+$")


@dataclass(frozen=True)
class RuleActions(BaseValueObject):
    """
    规则动作集合

    各动作相互独立，至少要有一个。

    Attributes:
        archive: 移到归档
        star: 加星
        delete: 删除（不在回收站则移入，已在回收站则彻底删除）
        mark_read: 标记已读
        add_tag_ids: 添加标签
        forward_to: 转发地址
    """

    archive: bool = False
    star: bool = False
    delete: bool = False
    mark_read: bool = False
    add_tag_ids: Tuple[UUID, ...] = ()
    forward_to: Tuple[str, ...] = ()

    def validate(self) -> None:
        if self.is_empty:
            raise InvalidValueObjectException(
                value_object_type="RuleActions",
                value=None,
                reason="A rule must have at least one action"
            )
        for address in self.forward_to:
            if not _ADDRESS_RE.match(address):
                raise InvalidValueObjectException(
                    value_object_type="RuleActions",
                    value=address,
                    reason=f"Invalid forward address: {address}"
                )

    @property
    def is_empty(self) -> bool:
        return not (
            self.archive
            or self.star
            or self.delete
            or self.mark_read
            or self.add_tag_ids
            or self.forward_to
        )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RuleActions":
        """
        从 JSON 字典解析动作

        forwardTo 可以是逗号分隔的字符串或列表。

        Raises:
            InvalidValueObjectException: 动作为空、标签 ID 非法或转发地址非法
        """
        data = data or {}

        def flag(*keys: str) -> bool:
            return any(bool(data.get(k)) for k in keys)

        raw_tags = data.get("addTagIds", data.get("add_tag_ids")) or []
        try:
            tag_ids = tuple(dict.fromkeys(UUID(str(t)) for t in raw_tags))
        except ValueError:
            raise InvalidValueObjectException(
                value_object_type="RuleActions",
                value=raw_tags,
                reason="addTagIds must contain UUIDs"
            )

        return cls(
            archive=flag("archive"),
            star=flag("star"),
            delete=flag("delete"),
            mark_read=flag("markRead", "mark_read"),
            add_tag_ids=tag_ids,
            forward_to=_split_addresses(data.get("forwardTo", data.get("forward_to"))),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.archive:
            result["archive"] = True
        if self.star:
            result["star"] = True
        if self.delete:
            result["delete"] = True
        if self.mark_read:
            result["markRead"] = True
        if self.add_tag_ids:
            result["addTagIds"] = [str(t) for t in self.add_tag_ids]
        if self.forward_to:
            result["forwardTo"] = list(self.forward_to)
        return result


def _split_addresses(value: Union[None, str, Iterable[str]]) -> Tuple[str, ...]:
    if not value:
        return ()
    parts = value.split(",") if isinstance(value, str) else value
    return tuple(dict.fromkeys(p.strip() for p in parts if p and p.strip()))
