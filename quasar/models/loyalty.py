"""
Loyalty program: tiers, rewards and point transactions
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, CheckConstraint, Column, DateTime,
                        ForeignKey, Integer, Numeric, String, Text, Uuid, func)
from sqlalchemy.orm import relationship

from quasar.core.database import Base
from quasar.core.utils import utcnow
from quasar.models.base import TimestampMixin, UUIDPrimaryKeyMixin


class RewardType(str, Enum):
    DISCOUNT_PERCENTAGE = "DISCOUNT_PERCENTAGE"
    DISCOUNT_FIXED = "DISCOUNT_FIXED"
    FREE_SHIPPING = "FREE_SHIPPING"
    PRODUCT = "PRODUCT"


class LoyaltyTransactionType(str, Enum):
    EARNED = "EARNED"
    REDEEMED = "REDEEMED"
    ADJUSTED = "ADJUSTED"
    EXPIRED = "EXPIRED"


class LoyaltyTier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "loyalty_tiers"

    name = Column(String(100), unique=True, nullable=False)
    min_points = Column(Integer, nullable=False, default=0)
    benefits = Column(JSON, nullable=True)
    color = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class LoyaltyReward(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "loyalty_rewards"
    __table_args__ = (
        CheckConstraint("points_cost > 0", name="ck_loyalty_rewards_points_cost_positive"),
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    points_cost = Column(Integer, nullable=False)
    reward_type = Column(String(30), nullable=False, default=RewardType.DISCOUNT_FIXED.value)
    value = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class LoyaltyTransaction(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "loyalty_transactions"

    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    reward_id = Column(Uuid, ForeignKey("loyalty_rewards.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(20), nullable=False)
    points = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.current_timestamp())

    reward = relationship("LoyaltyReward")
