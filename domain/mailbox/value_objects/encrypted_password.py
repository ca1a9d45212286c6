"""加密凭证值对象"""

from dataclasses import dataclass
from typing import Union

from cryptography.fernet import Fernet, InvalidToken

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException


def _fernet(encryption_key: Union[str, bytes]) -> Fernet:
    key = encryption_key if isinstance(encryption_key, bytes) else encryption_key.encode()
    return Fernet(key)


@dataclass(frozen=True)
class EncryptedPassword(BaseValueObject):
    """
    加密凭证值对象

    邮箱密码使用 Fernet 对称加密后保存，明文只在连接远程邮箱时短暂出现。

    Attributes:
        encrypted_value: Fernet 密文
    """

    encrypted_value: bytes

    def validate(self) -> None:
        if not self.encrypted_value:
            raise InvalidValueObjectException(
                value_object_type="EncryptedPassword",
                value=None,
                reason="Encrypted password cannot be empty"
            )

    @classmethod
    def from_plain(cls, plain_password: str, encryption_key: Union[str, bytes]) -> "EncryptedPassword":
        """
        加密明文密码

        Args:
            plain_password: 明文密码
            encryption_key: Fernet 密钥（urlsafe base64 编码的 32 字节）

        Returns:
            EncryptedPassword 实例

        Raises:
            InvalidValueObjectException: 密码为空或密钥无效
        """
        if not plain_password:
            raise InvalidValueObjectException(
                value_object_type="EncryptedPassword",
                value=None,
                reason="Password cannot be empty"
            )

        try:
            token = _fernet(encryption_key).encrypt(plain_password.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise InvalidValueObjectException(
                value_object_type="EncryptedPassword",
                value="[REDACTED]",
                reason=f"Failed to encrypt password: {e}"
            ) from e
        return cls(encrypted_value=token)

    @classmethod
    def from_stored(cls, encrypted_value: bytes) -> "EncryptedPassword":
        """从持久化的密文重建（不重新加密）"""
        return cls(encrypted_value=encrypted_value)

    def decrypt(self, encryption_key: Union[str, bytes]) -> str:
        """
        解密得到明文密码

        Raises:
            InvalidValueObjectException: 密钥不匹配或密文损坏
        """
        try:
            return _fernet(encryption_key).decrypt(self.encrypted_value).decode("utf-8")
        except InvalidToken as e:
            raise InvalidValueObjectException(
                value_object_type="EncryptedPassword",
                value="[ENCRYPTED]",
                reason="Failed to decrypt password: invalid key or corrupted data"
            ) from e
        except (ValueError, TypeError) as e:
            raise InvalidValueObjectException(
                value_object_type="EncryptedPassword",
                value="[ENCRYPTED]",
                reason=f"Failed to decrypt password: {e}"
            ) from e

    def __repr__(self) -> str:
        return "EncryptedPassword([ENCRYPTED])"

    def __str__(self) -> str:
        return "[ENCRYPTED]"
