"""
Webmail Sync Service - API 入口

运行：
    uv run python main.py

或使用 uvicorn：
    uv run uvicorn main:app --host 0.0.0.0 --port 8000 --reload

API 文档：
    http://localhost:8000/docs
"""

from interfaces.api import DDDApp
from interfaces.api.routes import (
    accounts_router,
    emails_router,
    rules_router,
    smtp_accounts_router,
    tags_router,
)

# 导入 handler getter 设置函数
from interfaces.api.routes.accounts import (
    set_handler_getter as set_add_handler,
    set_list_handler_getter,
    set_delete_handler_getter,
    set_test_handler_getter,
    set_sync_handler_getter,
    set_sync_all_handler_getter,
)
from interfaces.api.routes.emails import (
    set_list_emails_handler_getter,
    set_delete_emails_handler_getter,
)
from interfaces.api.routes.rules import set_rule_handler_getter
from interfaces.api.routes.smtp_accounts import set_smtp_handler_getter
from interfaces.api.routes.tags import set_tag_handler_getter

# 创建 DDDApp
ddd_app = DDDApp(
    title="Webmail Sync Service",
    description="多账号 IMAP 邮件同步服务 - 后台同步、邮件管理、自动化规则",
    enable_api_key_auth=True,
    api_key_whitelist_paths={"/", "/health"},
)

# 获取 DI 容器
container = ddd_app.bootstrap.app

# 注册 Handler Getters（连接 DI 容器到路由）
# 邮箱账号 handlers
set_add_handler(container.add_mailbox_account_handler)
set_list_handler_getter(container.list_mailbox_accounts_handler)
set_delete_handler_getter(container.delete_mailbox_account_handler)
set_test_handler_getter(container.test_mailbox_connection_handler)
set_sync_handler_getter(container.sync_mailbox_handler)
set_sync_all_handler_getter(container.sync_all_mailboxes_handler)

# 邮件 handlers
set_list_emails_handler_getter(container.list_emails_handler)
set_delete_emails_handler_getter(container.delete_emails_handler)

# 规则 handlers
set_rule_handler_getter("create", container.create_mail_rule_handler)
set_rule_handler_getter("update", container.update_mail_rule_handler)
set_rule_handler_getter("delete", container.delete_mail_rule_handler)
set_rule_handler_getter("list", container.list_mail_rules_handler)
set_rule_handler_getter("get", container.get_mail_rule_handler)
set_rule_handler_getter("preview", container.preview_mail_rule_handler)
set_rule_handler_getter("run", container.run_mail_rule_handler)

# 标签 handlers
set_tag_handler_getter("create", container.create_tag_handler)
set_tag_handler_getter("list", container.list_tags_handler)
set_tag_handler_getter("delete", container.delete_tag_handler)
set_tag_handler_getter("add_to_emails", container.add_tags_to_emails_handler)
set_tag_handler_getter("remove_from_emails", container.remove_tags_from_emails_handler)

# SMTP 账号 handlers
set_smtp_handler_getter("create", container.create_smtp_account_handler)
set_smtp_handler_getter("list", container.list_smtp_accounts_handler)
set_smtp_handler_getter("delete", container.delete_smtp_account_handler)
set_smtp_handler_getter("set_default", container.set_default_smtp_account_handler)

# 注册路由
ddd_app.fastapi.include_router(accounts_router, prefix="/api/v1", tags=["邮箱账号"])
ddd_app.fastapi.include_router(emails_router, prefix="/api/v1", tags=["邮件"])
ddd_app.fastapi.include_router(rules_router, prefix="/api/v1", tags=["邮件规则"])
ddd_app.fastapi.include_router(tags_router, prefix="/api/v1", tags=["标签"])
ddd_app.fastapi.include_router(smtp_accounts_router, prefix="/api/v1", tags=["SMTP 账号"])


# 根路由
@ddd_app.get("/")
async def root():
    """服务信息"""
    return {
        "service": ddd_app.settings.app_name,
        "version": ddd_app.settings.app_version,
        "docs": "/docs",
        "endpoints": {
            "accounts": "/api/v1/accounts",
            "emails": "/api/v1/emails",
            "rules": "/api/v1/rules",
            "tags": "/api/v1/tags",
            "smtp_accounts": "/api/v1/smtp-accounts",
        },
    }


# 健康检查
@ddd_app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


# 导出 FastAPI app (用于 uvicorn)
app = ddd_app.fastapi


if __name__ == "__main__":
    ddd_app.run(host="0.0.0.0", port=8000)
