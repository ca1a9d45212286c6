"""用量重算与计费检查的默认实现"""

import logging
from typing import Callable, Optional

from domain.usage.repositories.usage_repository import UsageRepository
from domain.usage.services.billing_gate import BillingCheck, BillingGate
from domain.usage.services.usage_recalculator import UsageRecalculator


class RepositoryUsageRecalculator(UsageRecalculator):
    """实时统计并覆盖用户的用量快照"""

    def __init__(
        self,
        usage_repository: UsageRepository | Callable[[], UsageRepository],
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            usage_repository: 用量仓储实例或工厂函数（后台调用时每次取新会话）
            logger: 可选的日志记录器
        """
        if callable(usage_repository) and not isinstance(usage_repository, UsageRepository):
            self._repository_factory: Callable[[], UsageRepository] = usage_repository
        else:
            self._repository_factory = lambda repo=usage_repository: repo  # type: ignore
        self._logger = logger or logging.getLogger(__name__)

    def recalculate(self, user_id: str) -> None:
        repository = self._repository_factory()
        snapshot = repository.compute(user_id)
        repository.save(snapshot)
        self._logger.debug(
            f"Usage recalculated for {user_id}: {snapshot.email_count} emails, "
            f"{snapshot.total_storage_bytes} bytes"
        )


class StorageQuotaBillingGate(BillingGate):
    """
    按存储配额放行同步

    以最近一次用量快照为准；没有快照或未设置上限（0）时放行。
    """

    def __init__(
        self,
        usage_repository: UsageRepository | Callable[[], UsageRepository],
        storage_limit_bytes: int = 0,
    ):
        if callable(usage_repository) and not isinstance(usage_repository, UsageRepository):
            self._repository_factory: Callable[[], UsageRepository] = usage_repository
        else:
            self._repository_factory = lambda repo=usage_repository: repo  # type: ignore
        self._limit = storage_limit_bytes

    def can_sync(self, user_id: str) -> BillingCheck:
        if self._limit <= 0:
            return BillingCheck(allowed=True)

        snapshot = self._repository_factory().get(user_id)
        if snapshot is None or snapshot.total_storage_bytes < self._limit:
            return BillingCheck(allowed=True)

        return BillingCheck(
            allowed=False,
            reason=f"Storage limit reached ({snapshot.total_storage_bytes}/{self._limit} bytes)",
        )
