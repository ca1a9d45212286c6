"""
基础设施容器（InfraContainer）

管理所有基础设施组件：数据库、仓储实现、IMAP/SMTP 适配器、附件存储、推送等。
依赖 ConfigContainer 获取配置。
"""

from dependency_injector import containers, providers
from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from infrastructure.database.database_factory import DatabaseFactory
from infrastructure.mail.repositories.sqlalchemy_attachment_repository import SqlAlchemyAttachmentRepository
from infrastructure.mail.repositories.sqlalchemy_email_repository import SqlAlchemyEmailRepository
from infrastructure.mail.repositories.sqlalchemy_smtp_account_repository import SqlAlchemySmtpAccountRepository
from infrastructure.mail.repositories.sqlalchemy_tag_repository import SqlAlchemyTagRepository
from infrastructure.mail.services.imap_mailbox_fetcher import ImapMailboxFetcher
from infrastructure.mail.services.local_attachment_store import LocalAttachmentStore
from infrastructure.mail.services.mailbox_update_publishers import (
    HttpMailboxUpdatePublisher,
    LoggingMailboxUpdatePublisher,
)
from infrastructure.mail.services.smtp_outbound_mail_sender import (
    RepositorySmtpProfileProvider,
    SettingsSmtpProfileProvider,
    SmtpOutboundMailSender,
)
from infrastructure.mailbox.repositories.sqlalchemy_mailbox_account_repository import (
    SqlAlchemyMailboxAccountRepository,
)
from infrastructure.rules.repositories.sqlalchemy_mail_rule_repository import SqlAlchemyMailRuleRepository
from infrastructure.usage.repositories.sqlalchemy_usage_repository import SqlAlchemyUsageRepository
from infrastructure.usage.services.usage_services_impl import (
    RepositoryUsageRecalculator,
    StorageQuotaBillingGate,
)


def _create_publisher(webhook_url):
    """配置了 Webhook 时通过 HTTP 推送，否则只记日志"""
    if webhook_url:
        return HttpMailboxUpdatePublisher(url=webhook_url)
    return LoggingMailboxUpdatePublisher()


class InfraContainer(containers.DeclarativeContainer):
    """基础设施容器 - 管理技术实现"""

    # 依赖配置容器
    config = providers.DependenciesContainer()

    # ============ 数据库 ============

    # 数据库引擎（单例）
    db_engine: providers.Singleton[Engine] = providers.Singleton(
        DatabaseFactory.create_engine,
        settings=config.settings,
    )

    # Session 工厂（单例）
    db_session_factory: providers.Singleton[sessionmaker] = providers.Singleton(
        DatabaseFactory.create_session_factory,
        engine=db_engine,
    )

    # 数据库 Session（每次请求新实例）
    db_session = providers.Factory(
        lambda session_factory: session_factory(),
        session_factory=db_session_factory,
    )

    # ============ 仓储 ============

    mailbox_account_repository = providers.Factory(
        SqlAlchemyMailboxAccountRepository,
        session=db_session,
    )

    email_repository = providers.Factory(
        SqlAlchemyEmailRepository,
        session=db_session,
    )

    attachment_repository = providers.Factory(
        SqlAlchemyAttachmentRepository,
        session=db_session,
    )

    tag_repository = providers.Factory(
        SqlAlchemyTagRepository,
        session=db_session,
    )

    smtp_account_repository = providers.Factory(
        SqlAlchemySmtpAccountRepository,
        session=db_session,
    )

    mail_rule_repository = providers.Factory(
        SqlAlchemyMailRuleRepository,
        session=db_session,
    )

    usage_repository = providers.Factory(
        SqlAlchemyUsageRepository,
        session=db_session,
    )

    # ============ 远程邮箱 ============

    # IMAP 收取（无状态，每次收取自建连接）
    mailbox_fetcher = providers.Singleton(
        ImapMailboxFetcher,
        encryption_key=config.settings.provided.encryption_key,
    )

    # ============ 附件与外发 ============

    attachment_store = providers.Singleton(
        LocalAttachmentStore,
        base_dir=config.settings.provided.attachments_local_dir,
    )

    mail_sender = providers.Singleton(
        SmtpOutboundMailSender,
        timeout=config.settings.provided.smtp_timeout_seconds,
    )

    # 服务级 SMTP 配置，用户没有默认账号时使用
    settings_smtp_profile_provider = providers.Singleton(
        SettingsSmtpProfileProvider,
        host=config.settings.provided.smtp_host,
        port=config.settings.provided.smtp_port,
        username=config.settings.provided.smtp_username,
        password=config.settings.provided.smtp_password,
        from_address=config.settings.provided.smtp_from_address,
        use_tls=config.settings.provided.smtp_use_tls,
    )

    # 优先使用用户的默认 SMTP 账号
    smtp_profile_provider = providers.Factory(
        RepositorySmtpProfileProvider,
        repository=smtp_account_repository,
        encryption_key=config.settings.provided.encryption_key,
        fallback=settings_smtp_profile_provider,
    )

    # ============ 推送 ============

    mailbox_update_publisher = providers.Singleton(
        _create_publisher,
        webhook_url=config.settings.provided.mailbox_update_webhook_url,
    )

    # ============ 用量与计费 ============

    # 传递仓储工厂，每次重算使用新的 Session
    usage_recalculator = providers.Singleton(
        RepositoryUsageRecalculator,
        usage_repository=usage_repository.provider,
    )

    billing_gate = providers.Singleton(
        StorageQuotaBillingGate,
        usage_repository=usage_repository.provider,
        storage_limit_bytes=config.settings.provided.storage_limit_bytes,
    )
