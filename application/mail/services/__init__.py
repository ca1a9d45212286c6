"""邮件应用服务"""

from application.mail.services.background_sync_service import BackgroundSyncService, SyncCycleResult
from application.mail.services.async_background_sync_service import AsyncBackgroundSyncService
from application.mail.services.email_trash_service import EmailTrashService, TrashOutcome
from application.mail.services.message_ingester import MessageIngester, IngestResult
from application.mail.services.sync_coordinator import SyncCoordinator, SyncOutcome

__all__ = [
    "BackgroundSyncService",
    "SyncCycleResult",
    "AsyncBackgroundSyncService",
    "EmailTrashService",
    "TrashOutcome",
    "MessageIngester",
    "IngestResult",
    "SyncCoordinator",
    "SyncOutcome",
]
