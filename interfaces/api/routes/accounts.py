"""邮箱账号 API 路由"""

from typing import Optional, Callable, List

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from application.commands.mailbox.add_mailbox_account import AddMailboxAccountCommand
from application.commands.mailbox.delete_mailbox_account import DeleteMailboxAccountCommand
from application.commands.mailbox.sync_mailbox import (
    SyncAllMailboxesCommand,
    SyncMailboxCommand,
    SyncMailboxResult,
)
from application.commands.mailbox.test_mailbox_connection import TestMailboxConnectionCommand
from application.handlers.mailbox.add_mailbox_account_handler import (
    AddMailboxAccountHandler,
    AddMailboxAccountResult,
)
from application.handlers.mailbox.list_mailbox_accounts_handler import ListMailboxAccountsHandler
from application.handlers.mailbox.delete_mailbox_account_handler import DeleteMailboxAccountHandler
from application.handlers.mailbox.sync_mailbox_handler import (
    SyncAllMailboxesHandler,
    SyncMailboxHandler,
)
from application.handlers.mailbox.test_mailbox_connection_handler import TestMailboxConnectionHandler
from application.queries.mailbox.list_mailbox_accounts import ListMailboxAccountsQuery
from interfaces.api.dependencies import get_current_user_id, handler_not_configured


router = APIRouter(prefix="/accounts", tags=["Mailbox Accounts"])


# ============ Handler 依赖注入 ============

# 全局 handler getter，由 DI 容器在启动时设置
_handler_getter: Optional[Callable[[], AddMailboxAccountHandler]] = None


def set_handler_getter(getter: Callable[[], AddMailboxAccountHandler]) -> None:
    """设置 handler 获取器（由 DI 容器调用）"""
    global _handler_getter
    _handler_getter = getter


def get_add_mailbox_handler() -> Optional[AddMailboxAccountHandler]:
    """获取 AddMailboxAccountHandler 实例"""
    if _handler_getter is None:
        return None
    return _handler_getter()


_list_handler_getter: Optional[Callable[[], ListMailboxAccountsHandler]] = None


def set_list_handler_getter(getter: Callable[[], ListMailboxAccountsHandler]) -> None:
    global _list_handler_getter
    _list_handler_getter = getter


def get_list_mailbox_handler() -> Optional[ListMailboxAccountsHandler]:
    if _list_handler_getter is None:
        return None
    return _list_handler_getter()


_delete_handler_getter: Optional[Callable[[], DeleteMailboxAccountHandler]] = None


def set_delete_handler_getter(getter: Callable[[], DeleteMailboxAccountHandler]) -> None:
    global _delete_handler_getter
    _delete_handler_getter = getter


def get_delete_mailbox_handler() -> Optional[DeleteMailboxAccountHandler]:
    if _delete_handler_getter is None:
        return None
    return _delete_handler_getter()


_test_handler_getter: Optional[Callable[[], TestMailboxConnectionHandler]] = None


def set_test_handler_getter(getter: Callable[[], TestMailboxConnectionHandler]) -> None:
    global _test_handler_getter
    _test_handler_getter = getter


def get_test_connection_handler() -> Optional[TestMailboxConnectionHandler]:
    if _test_handler_getter is None:
        return None
    return _test_handler_getter()


_sync_handler_getter: Optional[Callable[[], SyncMailboxHandler]] = None


def set_sync_handler_getter(getter: Callable[[], SyncMailboxHandler]) -> None:
    global _sync_handler_getter
    _sync_handler_getter = getter


def get_sync_mailbox_handler() -> Optional[SyncMailboxHandler]:
    if _sync_handler_getter is None:
        return None
    return _sync_handler_getter()


_sync_all_handler_getter: Optional[Callable[[], SyncAllMailboxesHandler]] = None


def set_sync_all_handler_getter(getter: Callable[[], SyncAllMailboxesHandler]) -> None:
    global _sync_all_handler_getter
    _sync_all_handler_getter = getter


def get_sync_all_handler() -> Optional[SyncAllMailboxesHandler]:
    if _sync_all_handler_getter is None:
        return None
    return _sync_all_handler_getter()


# ============ Request/Response DTOs ============

class AddMailboxAccountRequest(BaseModel):
    """
    添加邮箱账号请求

    Attributes:
        email: 邮箱地址
        password: IMAP 密码
        imap_server: IMAP 服务器地址
        imap_port: IMAP 端口，默认 993
        use_ssl: 是否使用 SSL/TLS
        username: 登录用户名，默认与邮箱地址相同
        name: 显示名称
    """

    email: str = Field(..., description="邮箱地址", min_length=3)
    password: str = Field(..., description="IMAP 密码", min_length=1)
    imap_server: str = Field(..., description="IMAP 服务器地址", min_length=1)
    imap_port: int = Field(default=993, description="IMAP 端口", ge=1, le=65535)
    use_ssl: bool = Field(default=True, description="是否使用 SSL/TLS")
    username: Optional[str] = Field(default=None, description="登录用户名")
    name: Optional[str] = Field(default=None, description="显示名称")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "user@example.com",
                    "password": "app_password",
                    "imap_server": "imap.example.com",
                    "imap_port": 993,
                    "use_ssl": True,
                    "name": "Work",
                }
            ]
        }
    }


class TestConnectionRequest(BaseModel):
    """测试 IMAP 连接请求"""

    __test__ = False

    imap_server: str = Field(..., description="IMAP 服务器地址", min_length=1)
    imap_port: int = Field(default=993, description="IMAP 端口", ge=1, le=65535)
    username: str = Field(..., description="登录用户名", min_length=1)
    password: str = Field(..., description="IMAP 密码", min_length=1)
    use_ssl: bool = Field(default=True, description="是否使用 SSL/TLS")


class TestConnectionResponse(BaseModel):
    __test__ = False

    success: bool
    error: Optional[str] = None


class MailboxAccountResponse(BaseModel):
    """添加邮箱账号响应（不包含密码）"""

    id: str = Field(..., description="邮箱账号 ID")
    email: str = Field(..., description="邮箱地址")
    message: str = Field(..., description="结果消息")


class ErrorResponse(BaseModel):
    """错误响应"""

    detail: str = Field(..., description="错误详情")
    error_code: Optional[str] = Field(default=None, description="错误代码")


class MailboxAccountListItem(BaseModel):
    """邮箱账号列表项"""

    id: str = Field(..., description="邮箱账号 ID")
    name: str = Field(..., description="显示名称")
    email: str = Field(..., description="邮箱地址")
    username: str = Field(..., description="登录用户名")
    imap_server: str = Field(..., description="IMAP 服务器地址")
    imap_port: int = Field(..., description="IMAP 端口")
    use_ssl: bool = Field(..., description="是否使用 SSL/TLS")
    is_syncing: bool = Field(..., description="是否正在同步")
    sync_progress: Optional[int] = Field(default=None, description="同步进度 0-100")
    sync_status: Optional[str] = Field(default=None, description="同步状态说明")
    last_synced_at: Optional[str] = Field(default=None, description="上次同步时间")
    created_at: str = Field(..., description="创建时间")


class MailboxAccountListResponse(BaseModel):
    """邮箱账号列表响应"""

    data: List[MailboxAccountListItem] = Field(..., description="邮箱账号列表")
    total: int = Field(..., description="总数")


class DeleteMailboxAccountResponse(BaseModel):
    """删除邮箱账号响应"""

    message: str = Field(..., description="删除结果消息")
    id: str = Field(..., description="被删除的邮箱账号 ID")


class SyncResponse(BaseModel):
    """单个账号同步响应"""

    account_id: str
    synced: int
    skipped: int
    errors: List[str]
    in_progress: bool
    message: str


class SyncAllResponse(BaseModel):
    """全部账号同步响应"""

    total_synced: int
    results: List[SyncResponse]


def _to_sync_response(result: SyncMailboxResult) -> SyncResponse:
    return SyncResponse(
        account_id=result.account_id,
        synced=result.synced,
        skipped=result.skipped,
        errors=result.errors,
        in_progress=result.in_progress,
        message=result.message,
    )


# ============ API Endpoints ============

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=MailboxAccountResponse,
    responses={
        400: {"model": ErrorResponse, "description": "IMAP 连接失败"},
        409: {"model": ErrorResponse, "description": "邮箱已存在"},
        422: {"model": ErrorResponse, "description": "请求参数验证失败"},
    },
    summary="添加邮箱账号",
    description="""
    为当前用户添加邮箱账号。

    **流程：**
    1. 检查该用户下邮箱是否已存在
    2. 验证 IMAP 连接有效性
    3. 创建邮箱记录（密码加密存储）
    """,
)
async def add_mailbox_account(
    request: AddMailboxAccountRequest,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[AddMailboxAccountHandler] = Depends(get_add_mailbox_handler),
) -> MailboxAccountResponse:
    if handler is None:
        raise handler_not_configured()

    command = AddMailboxAccountCommand(
        user_id=user_id,
        email=request.email,
        password=request.password,
        imap_server=request.imap_server,
        imap_port=request.imap_port,
        use_ssl=request.use_ssl,
        username=request.username,
        name=request.name,
    )

    result: AddMailboxAccountResult = await handler.handle(command)

    if not result.success:
        if result.error_code == "DUPLICATE_ACCOUNT":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
        elif result.error_code == "CONNECTION_FAILED":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
        elif result.error_code == "INVALID_VALUE":
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)
        elif result.error_code == "INTERNAL_ERROR":
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)
        else:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)

    return MailboxAccountResponse(id=result.account_id, email=result.email, message=result.message)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=MailboxAccountListResponse,
    summary="查询邮箱账号列表",
    description="列出当前用户的邮箱账号及同步状态。",
)
async def list_mailbox_accounts(
    user_id: str = Depends(get_current_user_id),
    handler: Optional[ListMailboxAccountsHandler] = Depends(get_list_mailbox_handler),
) -> MailboxAccountListResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(ListMailboxAccountsQuery(user_id=user_id))

    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    data = [
        MailboxAccountListItem(
            id=item.id,
            name=item.name,
            email=item.email,
            username=item.username,
            imap_server=item.imap_server,
            imap_port=item.imap_port,
            use_ssl=item.use_ssl,
            is_syncing=item.is_syncing,
            sync_progress=item.sync_progress,
            sync_status=item.sync_status,
            last_synced_at=item.last_synced_at,
            created_at=item.created_at,
        )
        for item in result.data
    ]
    return MailboxAccountListResponse(data=data, total=result.total)


@router.post(
    "/test",
    status_code=status.HTTP_200_OK,
    response_model=TestConnectionResponse,
    summary="测试 IMAP 连接",
    description="只测试连接和登录，不保存任何数据。失败时 success=false 并返回原因。",
)
async def test_connection(
    request: TestConnectionRequest,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[TestMailboxConnectionHandler] = Depends(get_test_connection_handler),
) -> TestConnectionResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(TestMailboxConnectionCommand(
        host=request.imap_server,
        port=request.imap_port,
        username=request.username,
        password=request.password,
        use_ssl=request.use_ssl,
    ))
    return TestConnectionResponse(success=result.success, error=result.error)


@router.post(
    "/sync-all",
    status_code=status.HTTP_200_OK,
    response_model=SyncAllResponse,
    responses={
        403: {"model": ErrorResponse, "description": "计费检查未通过"},
    },
    summary="同步全部邮箱账号",
    description="并发同步当前用户的全部邮箱账号，单个账号失败不影响其他账号。",
)
async def sync_all_mailboxes(
    user_id: str = Depends(get_current_user_id),
    handler: Optional[SyncAllMailboxesHandler] = Depends(get_sync_all_handler),
) -> SyncAllResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(SyncAllMailboxesCommand(user_id=user_id))

    if not result.success:
        if result.error_code == "SYNC_NOT_ALLOWED":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    return SyncAllResponse(
        total_synced=result.total_synced,
        results=[_to_sync_response(r) for r in result.results],
    )


@router.post(
    "/{account_id}/sync",
    status_code=status.HTTP_200_OK,
    response_model=SyncResponse,
    responses={
        403: {"model": ErrorResponse, "description": "计费检查未通过"},
        404: {"model": ErrorResponse, "description": "邮箱账号不存在"},
        502: {"model": ErrorResponse, "description": "同步失败"},
    },
    summary="同步邮箱账号",
    description="""
    立即同步一个邮箱账号并返回结果。

    已有同步在进行时立即返回 in_progress=true，不视为错误。
    """,
)
async def sync_mailbox(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[SyncMailboxHandler] = Depends(get_sync_mailbox_handler),
) -> SyncResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(SyncMailboxCommand(user_id=user_id, account_id=account_id))

    if not result.success:
        if result.error_code == "ACCOUNT_NOT_FOUND":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
        elif result.error_code == "SYNC_NOT_ALLOWED":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.message)
        elif result.error_code == "SYNC_FAILED":
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.message)
        else:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    return _to_sync_response(result)


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_200_OK,
    response_model=DeleteMailboxAccountResponse,
    responses={
        404: {"model": ErrorResponse, "description": "邮箱账号不存在"},
        409: {"model": ErrorResponse, "description": "同步进行中，无法删除"},
    },
    summary="删除邮箱账号",
    description="删除邮箱账号及其全部邮件、附件记录和账号级规则。同步进行中时拒绝删除。",
)
async def delete_mailbox_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[DeleteMailboxAccountHandler] = Depends(get_delete_mailbox_handler),
) -> DeleteMailboxAccountResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(DeleteMailboxAccountCommand(user_id=user_id, account_id=account_id))

    if not result.success:
        if result.error_code == "ACCOUNT_NOT_FOUND":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
        elif result.error_code == "SYNC_IN_PROGRESS":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
        else:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    return DeleteMailboxAccountResponse(message=result.message, id=result.account_id)
