"""
Loyalty program service: tiers, rewards and point balances
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.customer import Customer
from quasar.models.loyalty import (LoyaltyReward, LoyaltyTier,
                                   LoyaltyTransaction, LoyaltyTransactionType)
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)


class LoyaltyService:

    def __init__(self, db: Session):
        self.db = db
        self.tiers = BaseRepository(db, LoyaltyTier)
        self.rewards = BaseRepository(db, LoyaltyReward)

    # Tiers

    def list_tiers(self, include_inactive: bool = True) -> List[LoyaltyTier]:
        query = self.tiers.query()
        if not include_inactive:
            query = query.filter(LoyaltyTier.is_active.is_(True))
        return query.order_by(LoyaltyTier.min_points, LoyaltyTier.sort_order).all()

    def get_tier(self, tier_id: UUID) -> LoyaltyTier:
        tier = self.tiers.find_by_id(tier_id)
        if not tier:
            raise AppError.not_found(ModuleCode.LOYALTY, "Loyalty tier", tier_id)
        return tier

    def create_tier(self, data: Dict[str, Any]) -> LoyaltyTier:
        if self.tiers.exists(name=data["name"]):
            raise AppError.conflict(ModuleCode.LOYALTY, f"Loyalty tier '{data['name']}' already exists")
        tier = self.tiers.create(**data)
        self.db.commit()
        self.db.refresh(tier)
        return tier

    def update_tier(self, tier_id: UUID, data: Dict[str, Any]) -> LoyaltyTier:
        tier = self.get_tier(tier_id)
        if "name" in data and data["name"] != tier.name and self.tiers.exists(name=data["name"]):
            raise AppError.conflict(ModuleCode.LOYALTY, f"Loyalty tier '{data['name']}' already exists",
                                    OperationCode.UPDATE)
        self.tiers.update(tier, data)
        self.db.commit()
        self.db.refresh(tier)
        return tier

    def delete_tier(self, tier_id: UUID):
        self.tiers.soft_delete(self.get_tier(tier_id))
        self.db.commit()

    def get_customer_tier(self, customer_id: UUID) -> Optional[LoyaltyTier]:
        """Highest active tier whose min_points the customer has reached"""
        customer = self._get_customer(customer_id)
        return self.db.query(LoyaltyTier).filter(
            LoyaltyTier.is_active.is_(True),
            LoyaltyTier.min_points <= (customer.loyalty_points or 0),
        ).order_by(LoyaltyTier.min_points.desc()).first()

    # Rewards

    def list_rewards(self, include_inactive: bool = True) -> List[LoyaltyReward]:
        query = self.rewards.query()
        if not include_inactive:
            query = query.filter(LoyaltyReward.is_active.is_(True))
        return query.order_by(LoyaltyReward.points_cost).all()

    def get_reward(self, reward_id: UUID) -> LoyaltyReward:
        reward = self.rewards.find_by_id(reward_id)
        if not reward:
            raise AppError.not_found(ModuleCode.LOYALTY, "Loyalty reward", reward_id)
        return reward

    def create_reward(self, data: Dict[str, Any]) -> LoyaltyReward:
        if data.get("points_cost", 0) <= 0:
            raise AppError.validation(ModuleCode.LOYALTY, "points_cost must be positive", OperationCode.CREATE)
        reward = self.rewards.create(**data)
        self.db.commit()
        self.db.refresh(reward)
        return reward

    def update_reward(self, reward_id: UUID, data: Dict[str, Any]) -> LoyaltyReward:
        reward = self.get_reward(reward_id)
        if "points_cost" in data and data["points_cost"] <= 0:
            raise AppError.validation(ModuleCode.LOYALTY, "points_cost must be positive", OperationCode.UPDATE)
        self.rewards.update(reward, data)
        self.db.commit()
        self.db.refresh(reward)
        return reward

    def delete_reward(self, reward_id: UUID):
        self.rewards.soft_delete(self.get_reward(reward_id))
        self.db.commit()

    # Points

    def earn_points(self, customer_id: UUID, points: int, order_id: Optional[UUID] = None,
                    description: Optional[str] = None) -> LoyaltyTransaction:
        if points <= 0:
            raise AppError.validation(ModuleCode.LOYALTY, "Points must be positive")
        customer = self._get_customer(customer_id)
        return self._record(customer, LoyaltyTransactionType.EARNED, points, order_id=order_id,
                            description=description)

    def redeem_points(self, customer_id: UUID, points: Optional[int] = None, reward_id: Optional[UUID] = None,
                      description: Optional[str] = None) -> LoyaltyTransaction:
        """Spend points directly or on a reward; the balance may not go negative"""
        customer = self._get_customer(customer_id)
        reward = None
        if reward_id:
            reward = self.get_reward(reward_id)
            if not reward.is_active:
                raise AppError.business(ModuleCode.LOYALTY, f"Reward '{reward.name}' is not active")
            points = reward.points_cost
        if not points or points <= 0:
            raise AppError.validation(ModuleCode.LOYALTY, "Points must be positive")
        balance = customer.loyalty_points or 0
        if points > balance:
            raise AppError.business(
                ModuleCode.LOYALTY,
                f"Insufficient points: balance {balance}, required {points}",
                balance=balance, required=points,
            )
        return self._record(customer, LoyaltyTransactionType.REDEEMED, -points, reward_id=reward.id if reward else None,
                            description=description or (f"Redeemed {reward.name}" if reward else None))

    def adjust_points(self, customer_id: UUID, points: int, description: Optional[str] = None) -> LoyaltyTransaction:
        customer = self._get_customer(customer_id)
        if (customer.loyalty_points or 0) + points < 0:
            raise AppError.business(ModuleCode.LOYALTY, "Adjustment would make the balance negative")
        return self._record(customer, LoyaltyTransactionType.ADJUSTED, points, description=description)

    def list_transactions(self, page: int = 1, limit: int = 20, customer_id: Optional[UUID] = None,
                          type: Optional[str] = None) -> Tuple[List[LoyaltyTransaction], int]:
        query = self.db.query(LoyaltyTransaction)
        if customer_id:
            query = query.filter(LoyaltyTransaction.customer_id == customer_id)
        if type:
            query = query.filter(LoyaltyTransaction.type == type)
        return BaseRepository(self.db, LoyaltyTransaction).paginate(
            query.order_by(LoyaltyTransaction.created_at.desc()), page, limit
        )

    def get_stats(self) -> Dict[str, Any]:
        totals = dict(
            self.db.query(LoyaltyTransaction.type, func.coalesce(func.sum(LoyaltyTransaction.points), 0))
            .group_by(LoyaltyTransaction.type)
            .all()
        )
        members = self.db.query(Customer).filter(Customer.loyalty_points > 0).count()
        return {
            "members": members,
            "points_earned": int(totals.get(LoyaltyTransactionType.EARNED.value, 0)),
            "points_redeemed": abs(int(totals.get(LoyaltyTransactionType.REDEEMED.value, 0))),
            "active_tiers": self.tiers.query().filter(LoyaltyTier.is_active.is_(True)).count(),
            "active_rewards": self.rewards.query().filter(LoyaltyReward.is_active.is_(True)).count(),
        }

    def _record(self, customer: Customer, kind: LoyaltyTransactionType, points: int, **values) -> LoyaltyTransaction:
        customer.loyalty_points = (customer.loyalty_points or 0) + points
        transaction = LoyaltyTransaction(
            customer_id=customer.id,
            type=kind.value,
            points=points,
            balance_after=customer.loyalty_points,
            **values,
        )
        try:
            self.db.add(transaction)
            self.db.commit()
            self.db.refresh(transaction)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Loyalty {kind.value} {points:+d} for customer {customer.id} (balance {customer.loyalty_points})")
        return transaction

    def _get_customer(self, customer_id: UUID) -> Customer:
        customer = BaseRepository(self.db, Customer).find_by_id(customer_id)
        if not customer:
            raise AppError.not_found(ModuleCode.CUSTOMER, "Customer", customer_id)
        return customer
