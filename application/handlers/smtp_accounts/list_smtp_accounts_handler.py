"""查询 SMTP 账号 Handler"""

from application.queries.smtp_accounts.list_smtp_accounts import (
    ListSmtpAccountsQuery,
    ListSmtpAccountsResult,
    SmtpAccountItem,
)
from domain.mail.repositories.smtp_account_repository import SmtpAccountRepository


class ListSmtpAccountsHandler:
    """查询 SMTP 账号列表（纯读取，不返回密码）"""

    def __init__(self, repository: SmtpAccountRepository):
        self._repository = repository

    def handle(self, query: ListSmtpAccountsQuery) -> ListSmtpAccountsResult:
        accounts = self._repository.list_by_user(query.user_id)
        return ListSmtpAccountsResult(
            success=True,
            data=[
                SmtpAccountItem(
                    id=str(a.id),
                    name=a.name,
                    email=a.email,
                    alias=a.alias,
                    host=a.host,
                    port=a.port,
                    username=a.username,
                    use_ssl=a.use_ssl,
                    is_default=a.is_default,
                    created_at=a.created_at.isoformat(),
                )
                for a in accounts
            ],
        )
