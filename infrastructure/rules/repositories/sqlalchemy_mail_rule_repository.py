"""邮件规则 SQLAlchemy 仓储实现"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from domain.common.exceptions import DomainException
from domain.rules.entities.mail_rule import MailRule
from domain.rules.repositories.mail_rule_repository import MailRuleRepository
from domain.rules.value_objects.rule_actions import RuleActions
from domain.rules.value_objects.rule_conditions import RuleConditions
from infrastructure.rules.models.mail_rule_model import MailRuleModel


class SqlAlchemyMailRuleRepository(MailRuleRepository):
    """
    邮件规则仓储实现

    条件和动作以 JSON 保存，读取时重新校验；
    无法解析的行在评估路径上跳过并记录日志。
    """

    def __init__(self, session: Session, logger: Optional[logging.Logger] = None):
        """
        初始化仓储

        Args:
            session: SQLAlchemy Session
            logger: 可选的日志记录器
        """
        self._session = session
        self._logger = logger or logging.getLogger(__name__)

    def add(self, rule: MailRule) -> None:
        """添加规则"""
        self._session.add(self._to_model(rule))
        self._session.commit()

    def get_by_id_for_user(self, rule_id: UUID, user_id: str) -> Optional[MailRule]:
        """获取属于该用户的规则"""
        model = self._session.query(MailRuleModel).filter(
            MailRuleModel.id == str(rule_id),
            MailRuleModel.user_id == user_id,
        ).populate_existing().first()

        if model is None:
            return None

        return self._to_entity(model)

    def list_by_user(self, user_id: str) -> List[MailRule]:
        """获取用户的全部规则（priority, name, id 排序）"""
        models = self._ordered(
            self._session.query(MailRuleModel).filter(MailRuleModel.user_id == user_id)
        )
        return self._to_valid_entities(models)

    def list_enabled_for_account(self, user_id: str, account_id: UUID) -> List[MailRule]:
        """获取对该账号生效的已启用规则"""
        models = self._ordered(
            self._session.query(MailRuleModel).filter(
                MailRuleModel.user_id == user_id,
                MailRuleModel.is_enabled == True,  # noqa: E712
                or_(
                    MailRuleModel.account_id.is_(None),
                    MailRuleModel.account_id == str(account_id),
                ),
            )
        )
        return self._to_valid_entities(models)

    def update(self, rule: MailRule) -> None:
        """更新规则"""
        model = self._session.query(MailRuleModel).filter(
            MailRuleModel.id == str(rule.id)
        ).first()

        if model is not None:
            self._update_model(model, rule)
            self._session.commit()

    def remove(self, rule: MailRule) -> None:
        """删除规则"""
        model = self._session.query(MailRuleModel).filter(
            MailRuleModel.id == str(rule.id)
        ).first()

        if model is not None:
            self._session.delete(model)
            self._session.commit()

    @staticmethod
    def _ordered(query) -> List[MailRuleModel]:
        return query.order_by(
            MailRuleModel.priority,
            MailRuleModel.name,
            MailRuleModel.id,
        ).populate_existing().all()

    def _to_valid_entities(self, models: List[MailRuleModel]) -> List[MailRule]:
        rules: List[MailRule] = []
        for model in models:
            try:
                rules.append(self._to_entity(model))
            except DomainException as e:
                self._logger.warning(f"Skipping malformed mail rule {model.id}: {e.message}")
        return rules

    def _to_model(self, entity: MailRule) -> MailRuleModel:
        """将领域实体转换为数据模型"""
        return MailRuleModel(
            id=str(entity.id),
            user_id=entity.user_id,
            account_id=str(entity.account_id) if entity.account_id else None,
            name=entity.name,
            description=entity.description,
            conditions=entity.conditions.to_dict(),
            actions=entity.actions.to_dict(),
            is_enabled=entity.is_enabled,
            priority=entity.priority,
            stop_processing=entity.stop_processing,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def _to_entity(self, model: MailRuleModel) -> MailRule:
        """将数据模型转换为领域实体"""
        return MailRule(
            id=UUID(model.id),
            user_id=model.user_id,
            account_id=UUID(model.account_id) if model.account_id else None,
            name=model.name,
            description=model.description,
            conditions=RuleConditions.from_dict(model.conditions),
            actions=RuleActions.from_dict(model.actions),
            is_enabled=model.is_enabled,
            priority=model.priority,
            stop_processing=model.stop_processing,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )

    def _update_model(self, model: MailRuleModel, entity: MailRule) -> None:
        """更新数据模型"""
        model.account_id = str(entity.account_id) if entity.account_id else None
        model.name = entity.name
        model.description = entity.description
        model.conditions = entity.conditions.to_dict()
        model.actions = entity.actions.to_dict()
        model.is_enabled = entity.is_enabled
        model.priority = entity.priority
        model.stop_processing = entity.stop_processing
        model.updated_at = entity.updated_at
        model.version = entity.version
