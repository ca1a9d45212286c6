"""邮件规则仓储接口"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from domain.rules.entities.mail_rule import MailRule


class MailRuleRepository(ABC):
    """
    邮件规则仓储接口

    列表查询统一按 (priority, name, id) 升序返回。
    """

    @abstractmethod
    def add(self, rule: MailRule) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_by_id_for_user(self, rule_id: UUID, user_id: str) -> Optional[MailRule]:
        """
        获取属于该用户的规则

        Returns:
            规则实体，不存在或不属于该用户返回 None
        """
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[MailRule]:
        raise NotImplementedError

    @abstractmethod
    def list_enabled_for_account(self, user_id: str, account_id: UUID) -> List[MailRule]:
        """
        获取作用于某账号的已启用规则

        包括限定该账号的规则和不限账号的规则。无法解析的规则被跳过并记录日志。
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, rule: MailRule) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, rule: MailRule) -> None:
        raise NotImplementedError
