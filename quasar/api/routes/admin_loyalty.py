"""
Admin API routes for the loyalty program
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.loyalty import LoyaltyTransactionType, RewardType
from quasar.models.user import User
from quasar.services.loyalty_service import LoyaltyService

router = APIRouter(prefix="/api/admin/loyalty", tags=["admin-loyalty"])


class TierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    min_points: int = Field(0, ge=0)
    benefits: Optional[Dict[str, Any]] = None
    color: Optional[str] = Field(None, max_length=20)
    is_active: bool = True
    sort_order: int = 0


class TierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    min_points: Optional[int] = Field(None, ge=0)
    benefits: Optional[Dict[str, Any]] = None
    color: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class RewardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    reward_type: RewardType = RewardType.DISCOUNT_FIXED
    value: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    points_cost: Optional[int] = Field(None, gt=0)
    reward_type: Optional[RewardType] = None
    value: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class EarnRequest(BaseModel):
    customer_id: UUID
    points: int = Field(..., gt=0)
    order_id: Optional[UUID] = None
    description: Optional[str] = None


class RedeemRequest(BaseModel):
    customer_id: UUID
    points: Optional[int] = Field(None, gt=0)
    reward_id: Optional[UUID] = None
    description: Optional[str] = None


class AdjustRequest(BaseModel):
    customer_id: UUID
    points: int
    description: Optional[str] = None


class TierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    min_points: int
    benefits: Optional[Dict[str, Any]] = None
    color: Optional[str] = None
    is_active: bool
    sort_order: int


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    points_cost: int
    reward_type: str
    value: Optional[Decimal] = None
    is_active: bool


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    order_id: Optional[UUID] = None
    reward_id: Optional[UUID] = None
    type: str
    points: int
    balance_after: int
    description: Optional[str] = None
    created_at: datetime


def _enum_values(data: dict) -> dict:
    return {key: getattr(value, "value", value) for key, value in data.items()}


@router.get("/stats")
async def loyalty_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:loyalty")),
):
    return ResponseService.success(LoyaltyService(db).get_stats())


# Tiers

@router.get("/tiers")
async def list_tiers(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:loyalty_tier")),
):
    tiers = LoyaltyService(db).list_tiers(include_inactive)
    return ResponseService.success([TierResponse.model_validate(t) for t in tiers])


@router.post("/tiers", status_code=201)
async def create_tier(
    request: TierCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:loyalty_tier")),
):
    return ResponseService.created(TierResponse.model_validate(LoyaltyService(db).create_tier(request.model_dump())))


@router.put("/tiers/{tier_id}")
async def update_tier(
    tier_id: UUID,
    request: TierUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:loyalty_tier")),
):
    tier = LoyaltyService(db).update_tier(tier_id, request.model_dump(exclude_unset=True))
    return ResponseService.success(TierResponse.model_validate(tier))


@router.delete("/tiers/{tier_id}")
async def delete_tier(
    tier_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:loyalty_tier")),
):
    LoyaltyService(db).delete_tier(tier_id)
    return ResponseService.success({"id": tier_id, "deleted": True})


@router.get("/customers/{customer_id}/tier")
async def get_customer_tier(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:loyalty_tier")),
):
    """Highest active tier the customer's balance qualifies for"""
    tier = LoyaltyService(db).get_customer_tier(customer_id)
    return ResponseService.success(TierResponse.model_validate(tier) if tier else None)


# Rewards

@router.get("/rewards")
async def list_rewards(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:loyalty_reward")),
):
    rewards = LoyaltyService(db).list_rewards(include_inactive)
    return ResponseService.success([RewardResponse.model_validate(r) for r in rewards])


@router.post("/rewards", status_code=201)
async def create_reward(
    request: RewardCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:loyalty_reward")),
):
    reward = LoyaltyService(db).create_reward(_enum_values(request.model_dump()))
    return ResponseService.created(RewardResponse.model_validate(reward))


@router.put("/rewards/{reward_id}")
async def update_reward(
    reward_id: UUID,
    request: RewardUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:loyalty_reward")),
):
    reward = LoyaltyService(db).update_reward(reward_id, _enum_values(request.model_dump(exclude_unset=True)))
    return ResponseService.success(RewardResponse.model_validate(reward))


@router.delete("/rewards/{reward_id}")
async def delete_reward(
    reward_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:loyalty_reward")),
):
    LoyaltyService(db).delete_reward(reward_id)
    return ResponseService.success({"id": reward_id, "deleted": True})


# Points

@router.get("/transactions")
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    customer_id: Optional[UUID] = None,
    type: Optional[LoyaltyTransactionType] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:loyalty_transaction")),
):
    items, total = LoyaltyService(db).list_transactions(page, limit, customer_id, type.value if type else None)
    return ResponseService.list([TransactionResponse.model_validate(t) for t in items], total, page, limit)


@router.post("/points/earn", status_code=201)
async def earn_points(
    request: EarnRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:loyalty_transaction")),
):
    transaction = LoyaltyService(db).earn_points(request.customer_id, request.points, request.order_id,
                                                 request.description)
    return ResponseService.created(TransactionResponse.model_validate(transaction))


@router.post("/points/redeem", status_code=201)
async def redeem_points(
    request: RedeemRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:loyalty_transaction")),
):
    transaction = LoyaltyService(db).redeem_points(request.customer_id, request.points, request.reward_id,
                                                   request.description)
    return ResponseService.created(TransactionResponse.model_validate(transaction))


@router.post("/points/adjust", status_code=201)
async def adjust_points(
    request: AdjustRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:loyalty_transaction")),
):
    transaction = LoyaltyService(db).adjust_points(request.customer_id, request.points, request.description)
    return ResponseService.created(TransactionResponse.model_validate(transaction))
