"""用量领域服务接口"""

from domain.usage.services.usage_recalculator import UsageRecalculator
from domain.usage.services.billing_gate import BillingCheck, BillingGate

__all__ = ["UsageRecalculator", "BillingCheck", "BillingGate"]
