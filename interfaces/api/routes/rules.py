"""邮件规则 API 路由

规则处理器是同步的，端点使用普通函数，由 FastAPI 放到线程池执行。
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, Field

from application.commands.rules import (
    CreateMailRuleCommand,
    CreateMailRuleHandler,
    DeleteMailRuleCommand,
    DeleteMailRuleHandler,
    RunMailRuleCommand,
    RunMailRuleHandler,
    UpdateMailRuleCommand,
    UpdateMailRuleHandler,
)
from application.handlers.rules import (
    GetMailRuleHandler,
    ListMailRulesHandler,
    PreviewMailRuleHandler,
)
from application.queries.rules import (
    GetMailRuleQuery,
    ListMailRulesQuery,
    MailRuleItem,
    PreviewMailRuleQuery,
)
from interfaces.api.dependencies import get_current_user_id, handler_not_configured


router = APIRouter(prefix="/rules", tags=["Mail Rules"])


# ============ Handler 依赖注入 ============

# 每个处理器一个 getter，由 main.py 在启动时从 DI 容器设置
_handler_getters: Dict[str, Callable[[], Any]] = {}


def set_rule_handler_getter(name: str, getter: Callable[[], Any]) -> None:
    """
    设置规则处理器获取器

    Args:
        name: create / update / delete / list / get / preview / run
        getter: 返回处理器实例的工厂
    """
    _handler_getters[name] = getter


def _resolve(name: str) -> Any:
    getter = _handler_getters.get(name)
    if getter is None:
        raise handler_not_configured()
    return getter()


def get_create_handler() -> CreateMailRuleHandler:
    return _resolve("create")


def get_update_handler() -> UpdateMailRuleHandler:
    return _resolve("update")


def get_delete_handler() -> DeleteMailRuleHandler:
    return _resolve("delete")


def get_list_handler() -> ListMailRulesHandler:
    return _resolve("list")


def get_get_handler() -> GetMailRuleHandler:
    return _resolve("get")


def get_preview_handler() -> PreviewMailRuleHandler:
    return _resolve("preview")


def get_run_handler() -> RunMailRuleHandler:
    return _resolve("run")


# ============ Request/Response DTOs ============

class CreateMailRuleRequest(BaseModel):
    """
    创建规则请求

    conditions 支持 fromContains / toContains / ccContains / bccContains / subjectContains / bodyContains，
    多个条件需同时满足。actions 支持 markRead / star / archive /
    addTagIds / forwardTo / delete。
    """

    name: str = Field(..., min_length=1, max_length=200, description="规则名称")
    description: Optional[str] = Field(default=None, description="描述")
    account_id: Optional[str] = Field(default=None, description="限定账号，空表示全部账号")
    conditions: Dict[str, Any] = Field(default_factory=dict, description="匹配条件")
    actions: Dict[str, Any] = Field(default_factory=dict, description="执行动作")
    is_enabled: bool = Field(default=True, description="是否启用")
    priority: int = Field(default=0, description="优先级，越小越先执行")
    stop_processing: bool = Field(default=False, description="命中后不再评估后续规则")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Boss",
                    "conditions": {"fromContains": "boss@example.com"},
                    "actions": {"star": True, "markRead": True},
                    "priority": 1,
                }
            ]
        }
    }


class UpdateMailRuleRequest(BaseModel):
    """更新规则请求，未提供的字段保持不变"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    account_id: Optional[str] = Field(default=None, description="新的限定账号")
    all_accounts: bool = Field(default=False, description="为 true 时取消账号限定")
    conditions: Optional[Dict[str, Any]] = None
    actions: Optional[Dict[str, Any]] = None
    is_enabled: Optional[bool] = None
    priority: Optional[int] = None
    stop_processing: Optional[bool] = None


class MailRuleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    account_id: Optional[str] = None
    conditions: Dict[str, Any]
    actions: Dict[str, Any]
    is_enabled: bool
    priority: int
    stop_processing: bool
    created_at: str
    updated_at: str


class MailRuleListResponse(BaseModel):
    data: List[MailRuleResponse]


class RuleMutationResponse(BaseModel):
    id: str
    message: str


class PreviewResponse(BaseModel):
    rule_id: str
    matched_count: int = Field(..., description="会匹配的现有邮件数")


class RunResponse(BaseModel):
    rule_id: str
    matched_count: int
    processed_count: int
    errors: List[str]


class ErrorResponse(BaseModel):
    detail: str


def _raise_for(error_code: Optional[str], message: str) -> None:
    if error_code in ("RULE_NOT_FOUND", "ACCOUNT_NOT_FOUND"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    elif error_code == "INTERNAL_ERROR":
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
    else:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


def _to_response(item: MailRuleItem) -> MailRuleResponse:
    return MailRuleResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        account_id=item.account_id,
        conditions=item.conditions,
        actions=item.actions,
        is_enabled=item.is_enabled,
        priority=item.priority,
        stop_processing=item.stop_processing,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


# ============ API Endpoints ============

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RuleMutationResponse,
    responses={
        404: {"model": ErrorResponse, "description": "限定账号不存在"},
        422: {"model": ErrorResponse, "description": "条件或动作无效"},
    },
    summary="创建邮件规则",
)
def create_rule(
    request: CreateMailRuleRequest,
    user_id: str = Depends(get_current_user_id),
    handler: CreateMailRuleHandler = Depends(get_create_handler),
) -> RuleMutationResponse:
    result = handler.handle(CreateMailRuleCommand(
        user_id=user_id,
        name=request.name,
        conditions=request.conditions,
        actions=request.actions,
        account_id=request.account_id,
        description=request.description,
        is_enabled=request.is_enabled,
        priority=request.priority,
        stop_processing=request.stop_processing,
    ))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return RuleMutationResponse(id=result.rule_id, message=result.message)


@router.get(
    "",
    response_model=MailRuleListResponse,
    summary="查询邮件规则列表",
    description="按优先级升序返回当前用户的全部规则。",
)
def list_rules(
    user_id: str = Depends(get_current_user_id),
    handler: ListMailRulesHandler = Depends(get_list_handler),
) -> MailRuleListResponse:
    result = handler.handle(ListMailRulesQuery(user_id=user_id))
    return MailRuleListResponse(data=[_to_response(item) for item in result.data])


@router.get(
    "/{rule_id}",
    response_model=MailRuleResponse,
    responses={404: {"model": ErrorResponse, "description": "规则不存在"}},
    summary="查询邮件规则",
)
def get_rule(
    rule_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: GetMailRuleHandler = Depends(get_get_handler),
) -> MailRuleResponse:
    result = handler.handle(GetMailRuleQuery(user_id=user_id, rule_id=rule_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return _to_response(result.data[0])


@router.patch(
    "/{rule_id}",
    response_model=RuleMutationResponse,
    responses={
        404: {"model": ErrorResponse, "description": "规则或账号不存在"},
        422: {"model": ErrorResponse, "description": "条件或动作无效"},
    },
    summary="更新邮件规则",
)
def update_rule(
    rule_id: str,
    request: UpdateMailRuleRequest,
    user_id: str = Depends(get_current_user_id),
    handler: UpdateMailRuleHandler = Depends(get_update_handler),
) -> RuleMutationResponse:
    result = handler.handle(UpdateMailRuleCommand(
        user_id=user_id,
        rule_id=rule_id,
        name=request.name,
        description=request.description,
        conditions=request.conditions,
        actions=request.actions,
        account_id=request.account_id,
        all_accounts=request.all_accounts,
        is_enabled=request.is_enabled,
        priority=request.priority,
        stop_processing=request.stop_processing,
    ))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return RuleMutationResponse(id=result.rule_id, message=result.message)


@router.delete(
    "/{rule_id}",
    response_model=RuleMutationResponse,
    responses={404: {"model": ErrorResponse, "description": "规则不存在"}},
    summary="删除邮件规则",
)
def delete_rule(
    rule_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: DeleteMailRuleHandler = Depends(get_delete_handler),
) -> RuleMutationResponse:
    result = handler.handle(DeleteMailRuleCommand(user_id=user_id, rule_id=rule_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return RuleMutationResponse(id=result.rule_id, message=result.message)


@router.post(
    "/{rule_id}/preview",
    response_model=PreviewResponse,
    responses={404: {"model": ErrorResponse, "description": "规则不存在"}},
    summary="预览邮件规则",
    description="统计规则会匹配多少封现有邮件，不做任何修改。",
)
def preview_rule(
    rule_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: PreviewMailRuleHandler = Depends(get_preview_handler),
) -> PreviewResponse:
    result = handler.handle(PreviewMailRuleQuery(user_id=user_id, rule_id=rule_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return PreviewResponse(rule_id=result.rule_id, matched_count=result.matched_count)


@router.post(
    "/{rule_id}/run",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse, "description": "规则不存在"}},
    summary="对现有邮件执行规则",
    description="把规则的动作应用到全部匹配的现有邮件，匹配数与预览一致。",
)
def run_rule(
    rule_id: str,
    user_id: str = Depends(get_current_user_id),
    handler: RunMailRuleHandler = Depends(get_run_handler),
) -> RunResponse:
    result = handler.handle(RunMailRuleCommand(user_id=user_id, rule_id=rule_id))
    if not result.success:
        _raise_for(result.error_code, result.message)
    return RunResponse(
        rule_id=result.rule_id,
        matched_count=result.matched_count,
        processed_count=result.processed_count,
        errors=result.errors,
    )
