"""邮件 API 路由"""

from typing import Optional, Callable, List

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, Field

from application.commands.mail.delete_emails import DeleteEmailsCommand, DeleteEmailsResult
from application.handlers.mail.delete_emails_handler import DeleteEmailsHandler
from application.handlers.mail.list_emails_handler import ListEmailsHandler
from application.queries.mail.list_emails import ListEmailsQuery
from interfaces.api.dependencies import get_current_user_id, handler_not_configured


router = APIRouter(prefix="/emails", tags=["Emails"])


# ============ Handler 依赖注入 ============

_list_handler_getter: Optional[Callable[[], ListEmailsHandler]] = None


def set_list_emails_handler_getter(getter: Callable[[], ListEmailsHandler]) -> None:
    """设置 list handler 获取器（由 DI 容器调用）"""
    global _list_handler_getter
    _list_handler_getter = getter


def get_list_emails_handler() -> Optional[ListEmailsHandler]:
    if _list_handler_getter is None:
        return None
    return _list_handler_getter()


_delete_handler_getter: Optional[Callable[[], DeleteEmailsHandler]] = None


def set_delete_emails_handler_getter(getter: Callable[[], DeleteEmailsHandler]) -> None:
    """设置 delete handler 获取器（由 DI 容器调用）"""
    global _delete_handler_getter
    _delete_handler_getter = getter


def get_delete_emails_handler() -> Optional[DeleteEmailsHandler]:
    if _delete_handler_getter is None:
        return None
    return _delete_handler_getter()


# ============ Request/Response DTOs ============

class EmailListItem(BaseModel):
    """邮件列表项"""

    id: str
    account_id: str
    message_id: str
    folder: str
    from_address: str
    from_name: Optional[str] = None
    to_addresses: List[str]
    subject: str
    received_at: str
    is_read: bool
    is_starred: bool
    is_draft: bool
    thread_id: Optional[str] = None
    tag_ids: List[str]


class EmailListResponse(BaseModel):
    """邮件列表响应"""

    data: List[EmailListItem] = Field(..., description="邮件列表，按接收时间倒序")
    total: int = Field(..., description="满足条件的总数")
    limit: int = Field(..., description="每页数量")
    offset: int = Field(..., description="偏移")


class BulkDeleteRequest(BaseModel):
    """批量删除请求"""

    ids: List[str] = Field(..., description="邮件 ID 列表", min_length=1, max_length=500)


class DeleteEmailsResponse(BaseModel):
    """删除响应"""

    moved: int = Field(..., description="移入回收站的数量")
    destroyed: int = Field(..., description="彻底删除的数量")
    errors: List[str] = Field(default_factory=list, description="非致命错误")


class ErrorResponse(BaseModel):
    detail: str


def _to_delete_response(result: DeleteEmailsResult) -> DeleteEmailsResponse:
    if not result.success:
        if result.error_code == "EMAIL_NOT_FOUND":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
        elif result.error_code == "INVALID_EMAIL_ID":
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    return DeleteEmailsResponse(moved=result.moved, destroyed=result.destroyed, errors=result.errors)


# ============ API Endpoints ============

@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=EmailListResponse,
    responses={
        404: {"model": ErrorResponse, "description": "邮箱账号不存在"},
        422: {"model": ErrorResponse, "description": "文件夹无效"},
    },
    summary="查询邮件列表",
    description="""
    查询当前用户的邮件。

    读取时会为超过阈值未同步的账号提交后台同步，本次返回的是现有数据。
    """,
)
async def list_emails(
    account_id: Optional[str] = Query(default=None, description="只看某个邮箱账号"),
    folder: Optional[str] = Query(default=None, description="文件夹 (INBOX/SENT/DRAFTS/TRASH/SPAM/ARCHIVE)"),
    is_read: Optional[bool] = Query(default=None, description="已读筛选"),
    is_starred: Optional[bool] = Query(default=None, description="星标筛选"),
    limit: int = Query(default=50, ge=1, le=200, description="每页数量"),
    offset: int = Query(default=0, ge=0, description="偏移"),
    user_id: str = Depends(get_current_user_id),
    handler: Optional[ListEmailsHandler] = Depends(get_list_emails_handler),
) -> EmailListResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(ListEmailsQuery(
        user_id=user_id,
        account_id=account_id,
        folder=folder,
        is_read=is_read,
        is_starred=is_starred,
        limit=limit,
        offset=offset,
    ))

    if not result.success:
        if result.error_code == "ACCOUNT_NOT_FOUND":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
        elif result.error_code == "INVALID_FOLDER":
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)

    data = [
        EmailListItem(
            id=item.id,
            account_id=item.account_id,
            message_id=item.message_id,
            folder=item.folder,
            from_address=item.from_address,
            from_name=item.from_name,
            to_addresses=item.to_addresses,
            subject=item.subject,
            received_at=item.received_at,
            is_read=item.is_read,
            is_starred=item.is_starred,
            is_draft=item.is_draft,
            thread_id=item.thread_id,
            tag_ids=item.tag_ids,
        )
        for item in result.data
    ]
    return EmailListResponse(data=data, total=result.total, limit=limit, offset=offset)


@router.post(
    "/bulk-delete",
    status_code=status.HTTP_200_OK,
    response_model=DeleteEmailsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "没有一封属于当前用户"},
        422: {"model": ErrorResponse, "description": "邮件 ID 无效"},
    },
    summary="批量删除邮件",
    description="不在回收站的邮件移入回收站，已在回收站的彻底删除。不属于当前用户的 ID 被忽略。",
)
async def bulk_delete_emails(
    request: BulkDeleteRequest,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[DeleteEmailsHandler] = Depends(get_delete_emails_handler),
) -> DeleteEmailsResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(DeleteEmailsCommand(user_id=user_id, email_ids=request.ids))
    return _to_delete_response(result)


@router.delete(
    "/{email_id}",
    status_code=status.HTTP_200_OK,
    response_model=DeleteEmailsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "邮件不存在"},
    },
    summary="删除邮件",
    description="不在回收站的邮件移入回收站，已在回收站的彻底删除。",
)
async def delete_email(
    email_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: Optional[DeleteEmailsHandler] = Depends(get_delete_emails_handler),
) -> DeleteEmailsResponse:
    if handler is None:
        raise handler_not_configured()

    result = await handler.handle(DeleteEmailsCommand(user_id=user_id, email_ids=[email_id]))
    return _to_delete_response(result)
