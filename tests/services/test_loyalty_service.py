"""
Tests for LoyaltyService
"""
import pytest

from quasar.core.errors import AppError
from quasar.models.loyalty import LoyaltyTransactionType
from quasar.services.customer_service import CustomerService
from quasar.services.loyalty_service import LoyaltyService


@pytest.fixture
def customer(db):
    return CustomerService(db).create_customer({"email": "points@example.com", "first_name": "Pat",
                                                "last_name": "Points"})


def test_earn_and_redeem(db, customer):
    service = LoyaltyService(db)
    earned = service.earn_points(customer.id, 150, description="Welcome bonus")
    redeemed = service.redeem_points(customer.id, 40)

    assert earned.type == LoyaltyTransactionType.EARNED.value
    assert earned.balance_after == 150
    assert redeemed.points == -40
    assert redeemed.balance_after == 110
    db.refresh(customer)
    assert customer.loyalty_points == 110


def test_redeem_more_than_balance(db, customer):
    """Test that a redemption may not overdraw the balance"""
    service = LoyaltyService(db)
    service.earn_points(customer.id, 30)

    with pytest.raises(AppError) as exc_info:
        service.redeem_points(customer.id, 31)
    assert exc_info.value.status_code == 422
    assert exc_info.value.details == {"balance": 30, "required": 31}


def test_redeem_reward(db, customer):
    service = LoyaltyService(db)
    reward = service.create_reward({"name": "Free shipping", "points_cost": 100, "reward_type": "FREE_SHIPPING"})
    service.earn_points(customer.id, 120)

    transaction = service.redeem_points(customer.id, reward_id=reward.id)
    assert transaction.points == -100
    assert transaction.reward_id == reward.id
    assert transaction.description == "Redeemed Free shipping"


def test_inactive_reward_cannot_be_redeemed(db, customer):
    service = LoyaltyService(db)
    reward = service.create_reward({"name": "Mug", "points_cost": 10, "is_active": False})
    service.earn_points(customer.id, 50)

    with pytest.raises(AppError, match="not active"):
        service.redeem_points(customer.id, reward_id=reward.id)


def test_points_must_be_positive(db, customer):
    with pytest.raises(AppError):
        LoyaltyService(db).earn_points(customer.id, 0)


def test_adjust_points(db, customer):
    service = LoyaltyService(db)
    service.earn_points(customer.id, 20)
    assert service.adjust_points(customer.id, -5, "correction").balance_after == 15
    with pytest.raises(AppError):
        service.adjust_points(customer.id, -16)


def test_customer_tier(db, customer):
    service = LoyaltyService(db)
    service.create_tier({"name": "Bronze", "min_points": 0})
    service.create_tier({"name": "Silver", "min_points": 100})
    service.create_tier({"name": "Gold", "min_points": 500})

    assert service.get_customer_tier(customer.id).name == "Bronze"
    service.earn_points(customer.id, 250)
    assert service.get_customer_tier(customer.id).name == "Silver"


def test_duplicate_tier_name(db):
    service = LoyaltyService(db)
    service.create_tier({"name": "Gold", "min_points": 500})
    with pytest.raises(AppError) as exc_info:
        service.create_tier({"name": "Gold", "min_points": 600})
    assert exc_info.value.status_code == 409


def test_transactions_and_stats(db, customer):
    service = LoyaltyService(db)
    service.earn_points(customer.id, 100)
    service.redeem_points(customer.id, 30)

    items, total = service.list_transactions(customer_id=customer.id, type=LoyaltyTransactionType.EARNED.value)
    assert total == 1
    assert items[0].points == 100

    stats = service.get_stats()
    assert stats["members"] == 1
    assert stats["points_earned"] == 100
    assert stats["points_redeemed"] == 30
