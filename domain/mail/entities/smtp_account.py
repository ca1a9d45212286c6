"""外发 SMTP 账号实体"""

from dataclasses import dataclass, field
from typing import Optional, Union

from domain.common.base_entity import BaseEntity
from domain.common.exceptions import InvalidOperationException
from domain.mail.services.outbound_mail_sender import SmtpProfile
from domain.mailbox.value_objects.encrypted_password import EncryptedPassword


@dataclass(eq=False)
class SmtpAccount(BaseEntity):
    """
    用户自己的外发 SMTP 账号

    规则的转发动作使用调用者的默认账号发信。每个用户至多一个默认账号，
    由仓储在保存时保证。

    Attributes:
        user_id: 所属用户
        name: 显示名称
        email: 发件人地址
        alias: 发件人显示名
        host / port: SMTP 服务器
        username: 登录用户名
        encrypted_password: 加密存储的密码
        use_ssl: 465 端口直连 TLS；否则尝试 STARTTLS
        is_default: 是否为默认发信账号
    """

    user_id: str = field(default="")
    name: str = field(default="")
    email: str = field(default="")
    alias: Optional[str] = field(default=None)
    host: str = field(default="")
    port: int = field(default=587)
    username: str = field(default="")
    encrypted_password: Optional[EncryptedPassword] = field(default=None)
    use_ssl: bool = field(default=True)
    is_default: bool = field(default=False)

    def __post_init__(self) -> None:
        if not self.user_id:
            raise InvalidOperationException(
                operation="create_smtp_account",
                reason="User ID cannot be empty"
            )

        if not self.email or not self.host:
            raise InvalidOperationException(
                operation="create_smtp_account",
                reason="SMTP account requires an email address and a host"
            )

        if not 1 <= self.port <= 65535:
            raise InvalidOperationException(
                operation="create_smtp_account",
                reason=f"Invalid port number: {self.port}"
            )

    @classmethod
    def create(
        cls,
        user_id: str,
        email: str,
        host: str,
        port: int,
        password: str,
        encryption_key: Union[str, bytes],
        username: Optional[str] = None,
        name: Optional[str] = None,
        alias: Optional[str] = None,
        use_ssl: bool = True,
        is_default: bool = False,
    ) -> "SmtpAccount":
        """
        工厂方法：创建 SMTP 账号

        Args:
            password: 明文密码（将被加密存储）
            encryption_key: 加密密钥
            username: 登录用户名，默认与邮箱地址相同
            name: 显示名称，默认与邮箱地址相同
        """
        email = email.strip()
        return cls(
            user_id=user_id,
            name=(name or email).strip(),
            email=email,
            alias=alias,
            host=host.strip(),
            port=port,
            username=(username or email).strip(),
            encrypted_password=EncryptedPassword.from_plain(password, encryption_key),
            use_ssl=use_ssl,
            is_default=is_default,
        )

    def to_profile(self, encryption_key: Union[str, bytes]) -> SmtpProfile:
        """解密密码，得到发信用的 SmtpProfile"""
        if self.encrypted_password is None:
            raise InvalidOperationException(
                operation="get_decrypted_password",
                reason="No password has been set"
            )

        return SmtpProfile(
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.encrypted_password.decrypt(encryption_key),
            from_address=self.email,
            from_name=self.alias,
            use_tls=self.use_ssl,
        )
