"""路由公共依赖"""

from fastapi import Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> str:
    """
    从请求头获取当前用户

    身份认证由上游网关完成，这里只信任网关写入的 X-User-Id。

    Raises:
        HTTPException: 缺少或为空时返回 401
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return x_user_id.strip()


def handler_not_configured() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Handler not configured. Please configure dependency injection.",
    )
