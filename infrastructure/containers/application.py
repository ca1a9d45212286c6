"""
应用容器（AppContainer）

管理应用层组件：命令/查询处理器、同步协调器、后台服务等。
依赖 InfraContainer 获取基础设施。
"""

from typing import TYPE_CHECKING

from dependency_injector import containers, providers

from application.commands.rules import (
    CreateMailRuleHandler,
    DeleteMailRuleHandler,
    RunMailRuleHandler,
    UpdateMailRuleHandler,
)
from application.handlers.mail import DeleteEmailsHandler, ListEmailsHandler
from application.handlers.mailbox import (
    AddMailboxAccountHandler,
    DeleteMailboxAccountHandler,
    ListMailboxAccountsHandler,
    SyncAllMailboxesHandler,
    SyncMailboxHandler,
    TestMailboxConnectionHandler,
)
from application.handlers.rules import (
    GetMailRuleHandler,
    ListMailRulesHandler,
    PreviewMailRuleHandler,
)
from application.commands.smtp_accounts import (
    CreateSmtpAccountHandler,
    DeleteSmtpAccountHandler,
    SetDefaultSmtpAccountHandler,
)
from application.commands.tags import (
    AddTagsToEmailsHandler,
    CreateTagHandler,
    DeleteTagHandler,
    RemoveTagsFromEmailsHandler,
)
from application.handlers.smtp_accounts import ListSmtpAccountsHandler
from application.handlers.tags import ListTagsHandler
from application.mail.services import (
    AsyncBackgroundSyncService,
    EmailTrashService,
    MessageIngester,
    SyncCoordinator,
)
from application.rules.services.rule_engine import RuleEngine
from application.usage.services.usage_refresh_scheduler import UsageRefreshScheduler

if TYPE_CHECKING:
    from .infrastructure import InfraContainer


class AppContainer(containers.DeclarativeContainer):
    """应用容器 - 管理应用层服务"""

    # 依赖配置容器
    config = providers.DependenciesContainer()

    # 依赖基础设施容器
    infra = providers.DependenciesContainer()

    # ============ 应用服务 ============

    trash_service = providers.Factory(
        EmailTrashService,
        email_repository=infra.email_repository,
        attachment_repository=infra.attachment_repository,
        attachment_store=infra.attachment_store,
    )

    rule_engine = providers.Factory(
        RuleEngine,
        email_repository=infra.email_repository,
        mail_rule_repository=infra.mail_rule_repository,
        tag_repository=infra.tag_repository,
        trash_service=trash_service,
        mail_sender=infra.mail_sender,
        smtp_profiles=infra.smtp_profile_provider,
        batch_size=config.settings.provided.rule_apply_batch_size,
    )

    message_ingester = providers.Factory(
        MessageIngester,
        email_repository=infra.email_repository,
        attachment_repository=infra.attachment_repository,
        attachment_store=infra.attachment_store,
        merge_remote_flags=config.settings.provided.sync_merge_remote_flags,
    )

    # 每轮同步一个新实例，仓储 Session 互不共享
    sync_coordinator = providers.Factory(
        SyncCoordinator,
        account_repository=infra.mailbox_account_repository,
        mailbox_fetcher=infra.mailbox_fetcher,
        message_ingester=message_ingester,
        usage_recalculator=infra.usage_recalculator,
        rule_engine=rule_engine,
        publisher=infra.mailbox_update_publisher,
        lease_minutes=config.settings.provided.sync_lease_minutes,
        renew_interval=config.settings.provided.sync_lease_renew_seconds,
    )

    # 后台同步服务（单例，整个应用只需一个实例）
    # 注意: 仓储和协调器使用 .provider 传递工厂，确保每次同步独立
    background_sync_service = providers.Singleton(
        AsyncBackgroundSyncService,
        account_repository=infra.mailbox_account_repository.provider,
        sync_coordinator=sync_coordinator.provider,
        billing_gate=infra.billing_gate,
        interval=config.settings.provided.background_sync_interval_seconds,
        stale_after=config.settings.provided.background_sync_stale_seconds,
        max_concurrent=config.settings.provided.background_sync_max_concurrent,
        queue_size=config.settings.provided.background_sync_queue_size,
        sync_timeout=config.settings.provided.background_sync_timeout_seconds,
    )

    usage_refresh_scheduler = providers.Singleton(
        UsageRefreshScheduler,
        account_repository=infra.mailbox_account_repository.provider,
        usage_recalculator=infra.usage_recalculator,
        run_at_hour_utc=config.settings.provided.usage_refresh_hour_utc,
    )

    # ============ 邮箱账号 ============

    add_mailbox_account_handler = providers.Factory(
        AddMailboxAccountHandler,
        repository=infra.mailbox_account_repository,
        mailbox_fetcher=infra.mailbox_fetcher,
        encryption_key=config.settings.provided.encryption_key,
    )

    list_mailbox_accounts_handler = providers.Factory(
        ListMailboxAccountsHandler,
        repository=infra.mailbox_account_repository,
    )

    delete_mailbox_account_handler = providers.Factory(
        DeleteMailboxAccountHandler,
        repository=infra.mailbox_account_repository,
    )

    test_mailbox_connection_handler = providers.Factory(
        TestMailboxConnectionHandler,
        mailbox_fetcher=infra.mailbox_fetcher,
    )

    sync_mailbox_handler = providers.Factory(
        SyncMailboxHandler,
        account_repository=infra.mailbox_account_repository,
        sync_coordinator=sync_coordinator,
        billing_gate=infra.billing_gate,
    )

    sync_all_mailboxes_handler = providers.Factory(
        SyncAllMailboxesHandler,
        sync_coordinator=sync_coordinator,
        billing_gate=infra.billing_gate,
    )

    # ============ 邮件 ============

    list_emails_handler = providers.Factory(
        ListEmailsHandler,
        account_repository=infra.mailbox_account_repository,
        email_repository=infra.email_repository,
        background_sync=background_sync_service,
        stale_threshold_seconds=config.settings.provided.sync_stale_threshold_seconds,
    )

    delete_emails_handler = providers.Factory(
        DeleteEmailsHandler,
        account_repository=infra.mailbox_account_repository,
        email_repository=infra.email_repository,
        trash_service=trash_service,
    )

    # ============ 规则 ============

    create_mail_rule_handler = providers.Factory(
        CreateMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
        account_repository=infra.mailbox_account_repository,
    )

    update_mail_rule_handler = providers.Factory(
        UpdateMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
        account_repository=infra.mailbox_account_repository,
    )

    delete_mail_rule_handler = providers.Factory(
        DeleteMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
    )

    list_mail_rules_handler = providers.Factory(
        ListMailRulesHandler,
        rule_repository=infra.mail_rule_repository,
    )

    get_mail_rule_handler = providers.Factory(
        GetMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
    )

    preview_mail_rule_handler = providers.Factory(
        PreviewMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
        account_repository=infra.mailbox_account_repository,
        rule_engine=rule_engine,
    )

    run_mail_rule_handler = providers.Factory(
        RunMailRuleHandler,
        rule_repository=infra.mail_rule_repository,
        account_repository=infra.mailbox_account_repository,
        rule_engine=rule_engine,
    )

    # ============ 标签 ============

    create_tag_handler = providers.Factory(
        CreateTagHandler,
        tag_repository=infra.tag_repository,
    )

    list_tags_handler = providers.Factory(
        ListTagsHandler,
        tag_repository=infra.tag_repository,
    )

    delete_tag_handler = providers.Factory(
        DeleteTagHandler,
        tag_repository=infra.tag_repository,
    )

    add_tags_to_emails_handler = providers.Factory(
        AddTagsToEmailsHandler,
        account_repository=infra.mailbox_account_repository,
        email_repository=infra.email_repository,
        tag_repository=infra.tag_repository,
    )

    remove_tags_from_emails_handler = providers.Factory(
        RemoveTagsFromEmailsHandler,
        account_repository=infra.mailbox_account_repository,
        email_repository=infra.email_repository,
        tag_repository=infra.tag_repository,
    )

    # ============ SMTP 账号 ============

    create_smtp_account_handler = providers.Factory(
        CreateSmtpAccountHandler,
        repository=infra.smtp_account_repository,
        encryption_key=config.settings.provided.encryption_key,
    )

    list_smtp_accounts_handler = providers.Factory(
        ListSmtpAccountsHandler,
        repository=infra.smtp_account_repository,
    )

    delete_smtp_account_handler = providers.Factory(
        DeleteSmtpAccountHandler,
        repository=infra.smtp_account_repository,
    )

    set_default_smtp_account_handler = providers.Factory(
        SetDefaultSmtpAccountHandler,
        repository=infra.smtp_account_repository,
    )
