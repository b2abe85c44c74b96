"""
Payment method service: catalog administration and processing fee calculation
"""
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.utils import to_money
from quasar.models.order import FeeType, PaymentMethod
from quasar.services.checkout_method_service import CheckoutMethodService

_FEE_TYPES = {fee_type.value for fee_type in FeeType}


class PaymentMethodService(CheckoutMethodService):
    model = PaymentMethod
    module = ModuleCode.PAYMENT
    label = "Payment method"
    order_column = "payment_method_id"
    updatable_fields = (
        "code", "name", "description", "is_active", "is_default", "sort_order",
        "processing_fee", "processing_fee_type", "min_amount", "max_amount",
    )

    def validate(self, values: Dict[str, Any], method) -> None:
        self._non_negative(values, "processing_fee", "min_amount", "max_amount")

        fee_type = values.get("processing_fee_type")
        if fee_type is not None and fee_type not in _FEE_TYPES:
            raise AppError.validation(self.module, f"Unknown processing fee type {fee_type}",
                                      field="processing_fee_type")

        min_amount = values["min_amount"] if "min_amount" in values else getattr(method, "min_amount", None)
        max_amount = values["max_amount"] if "max_amount" in values else getattr(method, "max_amount", None)
        if min_amount is not None and max_amount is not None and Decimal(str(min_amount)) > Decimal(str(max_amount)):
            raise AppError.validation(self.module, "Minimum amount cannot be greater than maximum amount",
                                      field="min_amount")

    def calculate_payment(self, method_id: UUID, amount: Decimal) -> Dict[str, Any]:
        """
        Processing fee and total for paying `amount` with a method

        The method must be active and the amount inside its min/max bounds.
        """
        method = self.get_method(method_id)
        if not method.is_active:
            raise AppError.business(self.module, f"Payment method {method.code} is not active",
                                    OperationCode.PROCESS)

        amount = to_money(amount)
        min_amount, max_amount = method.min_amount, method.max_amount
        if min_amount is not None and max_amount is not None and not (min_amount <= amount <= max_amount):
            raise AppError.business(self.module, f"Amount must be between {min_amount} and {max_amount}",
                                    OperationCode.PROCESS, amount=str(amount))
        if min_amount is not None and amount < min_amount:
            raise AppError.business(self.module, f"Amount must be at least {min_amount}",
                                    OperationCode.PROCESS, amount=str(amount))
        if max_amount is not None and amount > max_amount:
            raise AppError.business(self.module, f"Amount must not exceed {max_amount}",
                                    OperationCode.PROCESS, amount=str(amount))

        fee = to_money(method.processing_fee)
        if method.processing_fee_type == FeeType.PERCENTAGE.value:
            fee = to_money(amount * fee / 100)
        return {
            "payment_method_id": method.id,
            "code": method.code,
            "subtotal": amount,
            "processing_fee": fee,
            "total": amount + fee,
        }
