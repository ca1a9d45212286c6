"""领域异常定义"""

from typing import Any, Optional


class DomainException(Exception):
    """
    领域异常基类

    Attributes:
        message: 错误信息
        code: 错误代码（供应用层映射为结果/HTTP 状态）
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidOperationException(DomainException):
    """非法操作"""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Invalid operation '{operation}': {reason}",
            code="INVALID_OPERATION",
        )
        self.operation = operation
        self.reason = reason


class InvalidValueObjectException(DomainException):
    """值对象校验失败"""

    def __init__(self, value_object_type: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid {value_object_type}: {reason}",
            code="INVALID_VALUE",
        )
        self.value_object_type = value_object_type
        self.value = value
        self.reason = reason


class DuplicateEntityException(DomainException):
    """实体重复（唯一约束冲突）"""

    def __init__(self, entity_type: str, key: Any):
        super().__init__(
            message=f"{entity_type} already exists: {key}",
            code="DUPLICATE_ENTITY",
        )
        self.entity_type = entity_type
        self.key = key


class MailboxConnectionError(DomainException):
    """
    远程邮箱连接失败

    无法建立连接或无法列出/收取邮件，会中止当前同步。
    """

    def __init__(self, message: str, server: Optional[str] = None, port: Optional[int] = None):
        super().__init__(message=message, code="MAILBOX_CONNECTION_ERROR")
        self.server = server
        self.port = port


class MailboxAuthenticationError(MailboxConnectionError):
    """远程邮箱认证失败"""

    def __init__(self, message: str, server: Optional[str] = None, port: Optional[int] = None):
        super().__init__(message=message, server=server, port=port)
        self.code = "MAILBOX_AUTH_ERROR"


class AttachmentStoreError(DomainException):
    """附件存储失败"""

    def __init__(self, message: str):
        super().__init__(message=message, code="ATTACHMENT_STORE_ERROR")


class MailSendError(DomainException):
    """外发邮件失败"""

    def __init__(self, message: str):
        super().__init__(message=message, code="MAIL_SEND_ERROR")
