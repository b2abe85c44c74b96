"""
Delivery method service: catalog administration and delivery cost quotes
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.utils import to_money
from quasar.models.order import DeliveryCostType, DeliveryMethod
from quasar.services.checkout_method_service import CheckoutMethodService

_COST_TYPES = {cost_type.value for cost_type in DeliveryCostType}


class DeliveryMethodService(CheckoutMethodService):
    model = DeliveryMethod
    module = ModuleCode.DELIVERY
    label = "Delivery method"
    order_column = "delivery_method_id"
    updatable_fields = (
        "code", "name", "description", "is_active", "is_default", "sort_order", "price",
        "cost_calculation_type", "free_delivery_threshold", "weight_limit_kg", "estimated_days",
    )

    def validate(self, values: Dict[str, Any], method) -> None:
        self._non_negative(values, "price", "free_delivery_threshold")
        cost_type = values.get("cost_calculation_type")
        if cost_type is not None and cost_type not in _COST_TYPES:
            raise AppError.validation(self.module, f"Unknown cost calculation type {cost_type}",
                                      field="cost_calculation_type")
        weight_limit = values.get("weight_limit_kg")
        if weight_limit is not None and Decimal(str(weight_limit)) <= 0:
            raise AppError.validation(self.module, "Weight limit must be positive", field="weight_limit_kg")
        days = values.get("estimated_days")
        if days is not None and days < 0:
            raise AppError.validation(self.module, "estimated_days cannot be negative", field="estimated_days")

    def calculate_delivery(
        self,
        method_id: UUID,
        order_amount: Decimal,
        weight_kg: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        """Delivery cost and total for an order of `order_amount` (and `weight_kg`)"""
        return self._quote(self.get_method(method_id), to_money(order_amount), weight_kg)

    def get_quotes(self, order_amount: Decimal, weight_kg: Optional[Decimal] = None) -> List[Dict[str, Any]]:
        """
        Quote every active method

        Available methods come first, cheapest first; the rest follow with the
        reason they cannot be used.
        """
        order_amount = to_money(order_amount)
        quotes = []
        for method in self.list_active():
            try:
                quote = self._quote(method, order_amount, weight_kg)
                quote.update(available=True, reason=None)
            except AppError as e:
                quote = {
                    "delivery_method_id": method.id,
                    "code": method.code,
                    "name": method.name,
                    "subtotal": order_amount,
                    "delivery_cost": None,
                    "total": None,
                    "estimated_days": method.estimated_days,
                    "available": False,
                    "reason": e.message,
                }
            quotes.append(quote)
        available = sorted((q for q in quotes if q["available"]), key=lambda q: q["delivery_cost"])
        return available + [q for q in quotes if not q["available"]]

    def _quote(self, method: DeliveryMethod, order_amount: Decimal, weight_kg: Optional[Decimal]) -> Dict[str, Any]:
        if not method.is_active:
            raise AppError.business(self.module, f"Delivery method {method.code} is not active",
                                    OperationCode.PROCESS)
        weight = Decimal(str(weight_kg)) if weight_kg is not None else None
        if weight is not None and weight < 0:
            raise AppError.validation(self.module, "Weight cannot be negative", OperationCode.PROCESS)
        if weight is not None and method.weight_limit_kg is not None and weight > method.weight_limit_kg:
            raise AppError.business(self.module,
                                    f"Weight {weight} kg exceeds the {method.weight_limit_kg} kg limit",
                                    OperationCode.PROCESS)

        threshold = method.free_delivery_threshold
        if method.cost_calculation_type == DeliveryCostType.FREE.value:
            cost = Decimal("0.00")
        elif threshold is not None and order_amount >= threshold:
            cost = Decimal("0.00")
        elif method.cost_calculation_type == DeliveryCostType.WEIGHT_BASED.value:
            if weight is None:
                raise AppError.validation(self.module, f"Delivery method {method.code} needs the parcel weight",
                                          OperationCode.PROCESS)
            cost = to_money(to_money(method.price) * weight)
        else:
            cost = to_money(method.price)

        return {
            "delivery_method_id": method.id,
            "code": method.code,
            "name": method.name,
            "subtotal": order_amount,
            "delivery_cost": cost,
            "total": order_amount + cost,
            "estimated_days": method.estimated_days,
        }
