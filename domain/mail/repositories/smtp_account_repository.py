"""SMTP 账号仓储接口"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from domain.mail.entities.smtp_account import SmtpAccount


class SmtpAccountRepository(ABC):
    """SMTP 账号仓储"""

    @abstractmethod
    def add(self, account: SmtpAccount) -> None:
        """
        添加账号

        账号为默认账号时，同一用户的其他账号取消默认。
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id_for_user(self, account_id: UUID, user_id: str) -> Optional[SmtpAccount]:
        raise NotImplementedError

    @abstractmethod
    def list_by_user(self, user_id: str) -> List[SmtpAccount]:
        """按创建时间返回用户的全部账号"""
        raise NotImplementedError

    @abstractmethod
    def get_default(self, user_id: str) -> Optional[SmtpAccount]:
        """获取用户的默认账号，没有返回 None"""
        raise NotImplementedError

    @abstractmethod
    def set_default(self, account: SmtpAccount) -> None:
        """把账号设为默认，同一用户的其他账号取消默认"""
        raise NotImplementedError

    @abstractmethod
    def remove(self, account: SmtpAccount) -> None:
        raise NotImplementedError
