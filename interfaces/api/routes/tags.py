"""标签 API 路由

标签处理器是同步的，端点使用普通函数。
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from application.commands.tags import (
    AddTagsToEmailsHandler,
    CreateTagCommand,
    CreateTagHandler,
    DeleteTagCommand,
    DeleteTagHandler,
    RemoveTagsFromEmailsHandler,
    TagEmailsCommand,
)
from application.handlers.tags import ListTagsHandler
from application.queries.tags import ListTagsQuery
from interfaces.api.dependencies import get_current_user_id, handler_not_configured


router = APIRouter(prefix="/tags", tags=["Tags"])


# ============ Handler 依赖注入 ============

_handler_getters: Dict[str, Callable[[], Any]] = {}


def set_tag_handler_getter(name: str, getter: Callable[[], Any]) -> None:
    """
    设置标签处理器获取器

    Args:
        name: create / list / delete / add_to_emails / remove_from_emails
        getter: 返回处理器实例的工厂
    """
    _handler_getters[name] = getter


def _resolve(name: str) -> Any:
    getter = _handler_getters.get(name)
    if getter is None:
        raise handler_not_configured()
    return getter()


def get_create_handler() -> CreateTagHandler:
    return _resolve("create")


def get_list_handler() -> ListTagsHandler:
    return _resolve("list")


def get_delete_handler() -> DeleteTagHandler:
    return _resolve("delete")


def get_add_handler() -> AddTagsToEmailsHandler:
    return _resolve("add_to_emails")


def get_remove_handler() -> RemoveTagsFromEmailsHandler:
    return _resolve("remove_from_emails")


# ============ Request/Response DTOs ============

class CreateTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="标签名，同一用户内唯一")
    color: Optional[str] = Field(default=None, max_length=32, description="颜色，如 #ff8800")


class TagEmailsRequest(BaseModel):
    email_ids: List[str] = Field(..., min_length=1, description="邮件 ID 列表")
    tag_ids: List[str] = Field(..., min_length=1, description="标签 ID 列表")


class TagResponse(BaseModel):
    id: str
    name: str
    color: Optional[str] = None
    created_at: str


class TagListResponse(BaseModel):
    data: List[TagResponse]


class TagMutationResponse(BaseModel):
    id: str
    message: str


class TagEmailsResponse(BaseModel):
    changed: int = Field(..., description="新增或删除的关联数")
    message: str


class ErrorResponse(BaseModel):
    detail: str


def _raise_for(error_code: Optional[str], message: str) -> None:
    if error_code in ("TAG_NOT_FOUND", "EMAIL_NOT_FOUND"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    elif error_code == "DUPLICATE_ENTITY":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)
    else:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


# ============ API Endpoints ============

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TagMutationResponse,
    responses={
        409: {"model": ErrorResponse, "description": "同名标签已存在"},
        422: {"model": ErrorResponse, "description": "名称无效"},
    },
    summary="创建标签",
)
def create_tag(
    request: CreateTagRequest,
    user_id: str = Depends(get_current_user_id),
    handler: CreateTagHandler = Depends(get_create_handler),
) -> TagMutationResponse:
    result = handler.handle(CreateTagCommand(user_id=user_id, name=request.name, color=request.color))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return TagMutationResponse(id=result.tag_id, message=result.message)


@router.get(
    "",
    response_model=TagListResponse,
    summary="查询标签列表",
)
def list_tags(
    user_id: str = Depends(get_current_user_id),
    handler: ListTagsHandler = Depends(get_list_handler),
) -> TagListResponse:
    result = handler.handle(ListTagsQuery(user_id=user_id))
    return TagListResponse(data=[
        TagResponse(id=item.id, name=item.name, color=item.color, created_at=item.created_at)
        for item in result.data
    ])


@router.delete(
    "/{tag_id}",
    response_model=TagMutationResponse,
    responses={404: {"model": ErrorResponse, "description": "标签不存在"}},
    summary="删除标签",
    description="删除标签，并从所有邮件上移除它。",
)
def delete_tag(
    tag_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: DeleteTagHandler = Depends(get_delete_handler),
) -> TagMutationResponse:
    result = handler.handle(DeleteTagCommand(user_id=user_id, tag_id=tag_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return TagMutationResponse(id=result.tag_id, message=result.message)


@router.post(
    "/apply",
    response_model=TagEmailsResponse,
    responses={404: {"model": ErrorResponse, "description": "标签或邮件不存在"}},
    summary="给邮件打标签",
)
def add_tags_to_emails(
    request: TagEmailsRequest,
    user_id: str = Depends(get_current_user_id),
    handler: AddTagsToEmailsHandler = Depends(get_add_handler),
) -> TagEmailsResponse:
    result = handler.handle(TagEmailsCommand(user_id=user_id, email_ids=request.email_ids, tag_ids=request.tag_ids))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return TagEmailsResponse(changed=result.changed, message=result.message)


@router.post(
    "/remove",
    response_model=TagEmailsResponse,
    responses={404: {"model": ErrorResponse, "description": "标签或邮件不存在"}},
    summary="移除邮件上的标签",
)
def remove_tags_from_emails(
    request: TagEmailsRequest,
    user_id: str = Depends(get_current_user_id),
    handler: RemoveTagsFromEmailsHandler = Depends(get_remove_handler),
) -> TagEmailsResponse:
    result = handler.handle(TagEmailsCommand(user_id=user_id, email_ids=request.email_ids, tag_ids=request.tag_ids))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return TagEmailsResponse(changed=result.changed, message=result.message)
