"""RuleConditions 值对象测试"""

import pytest
from uuid import uuid4

from domain.common.exceptions import InvalidValueObjectException
from domain.mail.entities.email import Email
from domain.rules.value_objects.rule_conditions import ConditionField, RuleConditions


def make_email(**kwargs) -> Email:
    defaults = {
        "account_id": uuid4(),
        "message_id": "<m1@example.com>",
        "from_address": "Billing@Vendor.com",
        "from_name": "Vendor Billing",
        "to_addresses": ["me@example.com"],
        "cc_addresses": ["boss@example.com"],
        "subject": "Your INVOICE for March",
        "body_text": "Amount due: 42 EUR",
    }
    defaults.update(kwargs)
    return Email(**defaults)


class TestRuleConditionsParsing:
    """条件解析"""

    def test_camel_case_keys(self):
        conditions = RuleConditions.from_dict({"fromContains": "Vendor", "subjectContains": " Invoice "})

        assert conditions.term_for(ConditionField.FROM) == "vendor"
        assert conditions.term_for(ConditionField.SUBJECT) == "invoice"

    def test_snake_case_aliases(self):
        conditions = RuleConditions.from_dict({"body_contains": "Amount"})

        assert conditions.to_dict() == {"bodyContains": "amount"}

    def test_blank_values_are_ignored(self):
        conditions = RuleConditions.from_dict({"fromContains": "   ", "toContains": None})

        assert conditions.is_empty

    def test_unknown_key_raises_error(self):
        with pytest.raises(InvalidValueObjectException):
            RuleConditions.from_dict({"headerContains": "x"})

    def test_non_string_value_raises_error(self):
        with pytest.raises(InvalidValueObjectException):
            RuleConditions.from_dict({"subjectContains": 42})

    def test_serialization_order_is_stable(self):
        conditions = RuleConditions.from_dict({"bodyContains": "b", "fromContains": "a"})

        assert list(conditions.to_dict()) == ["fromContains", "bodyContains"]


class TestRuleConditionsMatching:
    """条件匹配"""

    def test_all_conditions_must_match(self):
        """测试条件之间为 AND 关系"""
        email = make_email()

        assert RuleConditions.from_dict({"fromContains": "vendor", "subjectContains": "invoice"}).matches(email)
        assert not RuleConditions.from_dict({"fromContains": "vendor", "subjectContains": "receipt"}).matches(email)

    def test_match_is_case_insensitive(self):
        email = make_email()

        assert RuleConditions.from_dict({"fromContains": "BILLING@VENDOR"}).matches(email)

    def test_from_matches_display_name(self):
        email = make_email(from_address="noreply@x.com", from_name="Vendor Billing")

        assert RuleConditions.from_dict({"fromContains": "billing"}).matches(email)

    def test_cc_and_body(self):
        email = make_email()

        assert RuleConditions.from_dict({"ccContains": "boss", "bodyContains": "amount due"}).matches(email)
        assert not RuleConditions.from_dict({"bccContains": "boss"}).matches(email)

    def test_empty_conditions_match_nothing(self):
        """测试空条件不匹配任何邮件"""
        assert not RuleConditions().matches(make_email())
