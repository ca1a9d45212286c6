"""SMTP 账号 API 路由

规则的转发动作使用调用者的默认 SMTP 账号发信。
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from application.commands.smtp_accounts import (
    CreateSmtpAccountCommand,
    CreateSmtpAccountHandler,
    DeleteSmtpAccountHandler,
    SetDefaultSmtpAccountHandler,
    SmtpAccountCommand,
)
from application.handlers.smtp_accounts import ListSmtpAccountsHandler
from application.queries.smtp_accounts import ListSmtpAccountsQuery
from interfaces.api.dependencies import get_current_user_id, handler_not_configured


router = APIRouter(prefix="/smtp-accounts", tags=["SMTP Accounts"])


# ============ Handler 依赖注入 ============

_handler_getters: Dict[str, Callable[[], Any]] = {}


def set_smtp_handler_getter(name: str, getter: Callable[[], Any]) -> None:
    """
    设置 SMTP 账号处理器获取器

    Args:
        name: create / list / delete / set_default
    """
    _handler_getters[name] = getter


def _resolve(name: str) -> Any:
    getter = _handler_getters.get(name)
    if getter is None:
        raise handler_not_configured()
    return getter()


def get_create_handler() -> CreateSmtpAccountHandler:
    return _resolve("create")


def get_list_handler() -> ListSmtpAccountsHandler:
    return _resolve("list")


def get_delete_handler() -> DeleteSmtpAccountHandler:
    return _resolve("delete")


def get_set_default_handler() -> SetDefaultSmtpAccountHandler:
    return _resolve("set_default")


# ============ Request/Response DTOs ============

class CreateSmtpAccountRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, description="发件人地址")
    host: str = Field(..., min_length=1, max_length=255, description="SMTP 服务器")
    port: int = Field(default=587, ge=1, le=65535, description="端口，465 为直连 TLS")
    password: str = Field(..., min_length=1, description="密码（加密存储）")
    username: Optional[str] = Field(default=None, description="登录用户名，默认与邮箱地址相同")
    name: Optional[str] = Field(default=None, max_length=255, description="显示名称")
    alias: Optional[str] = Field(default=None, max_length=255, description="发件人显示名")
    use_ssl: bool = Field(default=True, description="是否加密连接")
    is_default: bool = Field(default=False, description="是否设为默认；第一个账号总是默认")


class SmtpAccountResponse(BaseModel):
    id: str
    name: str
    email: str
    alias: Optional[str] = None
    host: str
    port: int
    username: str
    use_ssl: bool
    is_default: bool
    created_at: str


class SmtpAccountListResponse(BaseModel):
    data: List[SmtpAccountResponse]


class CreateSmtpAccountResponse(BaseModel):
    id: str
    is_default: bool
    message: str


class SmtpAccountMutationResponse(BaseModel):
    id: str
    message: str


class ErrorResponse(BaseModel):
    detail: str


def _raise_for(error_code: Optional[str], message: str) -> None:
    if error_code == "ACCOUNT_NOT_FOUND":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    else:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


# ============ API Endpoints ============

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateSmtpAccountResponse,
    responses={422: {"model": ErrorResponse, "description": "参数无效"}},
    summary="添加 SMTP 账号",
)
def create_smtp_account(
    request: CreateSmtpAccountRequest,
    user_id: str = Depends(get_current_user_id),
    handler: CreateSmtpAccountHandler = Depends(get_create_handler),
) -> CreateSmtpAccountResponse:
    result = handler.handle(CreateSmtpAccountCommand(
        user_id=user_id,
        email=request.email,
        host=request.host,
        port=request.port,
        password=request.password,
        username=request.username,
        name=request.name,
        alias=request.alias,
        use_ssl=request.use_ssl,
        is_default=request.is_default,
    ))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return CreateSmtpAccountResponse(id=result.account_id, is_default=result.is_default, message=result.message)


@router.get(
    "",
    response_model=SmtpAccountListResponse,
    summary="查询 SMTP 账号列表",
)
def list_smtp_accounts(
    user_id: str = Depends(get_current_user_id),
    handler: ListSmtpAccountsHandler = Depends(get_list_handler),
) -> SmtpAccountListResponse:
    result = handler.handle(ListSmtpAccountsQuery(user_id=user_id))
    return SmtpAccountListResponse(data=[
        SmtpAccountResponse(
            id=item.id,
            name=item.name,
            email=item.email,
            alias=item.alias,
            host=item.host,
            port=item.port,
            username=item.username,
            use_ssl=item.use_ssl,
            is_default=item.is_default,
            created_at=item.created_at,
        )
        for item in result.data
    ])


@router.delete(
    "/{account_id}",
    response_model=SmtpAccountMutationResponse,
    responses={404: {"model": ErrorResponse, "description": "账号不存在"}},
    summary="删除 SMTP 账号",
)
def delete_smtp_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: DeleteSmtpAccountHandler = Depends(get_delete_handler),
) -> SmtpAccountMutationResponse:
    result = handler.handle(SmtpAccountCommand(user_id=user_id, account_id=account_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return SmtpAccountMutationResponse(id=result.account_id, message=result.message)


@router.post(
    "/{account_id}/default",
    response_model=SmtpAccountMutationResponse,
    responses={404: {"model": ErrorResponse, "description": "账号不存在"}},
    summary="设为默认 SMTP 账号",
)
def set_default_smtp_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: SetDefaultSmtpAccountHandler = Depends(get_set_default_handler),
) -> SmtpAccountMutationResponse:
    result = handler.handle(SmtpAccountCommand(user_id=user_id, account_id=account_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return SmtpAccountMutationResponse(id=result.account_id, message=result.message)
