"""
Shared rules for checkout option catalogs (payment and delivery methods)

Both kinds have a unique code, an active flag, at most one default and an
admin-controlled sort order.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.order import Order
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)


class CheckoutMethodService:
    """Base service; subclasses set `model`, `module`, `label` and `order_column`"""

    model: Type = None
    module: ModuleCode = None
    label: str = "Method"
    # Order column referencing this method, used to block deleting methods in use
    order_column: str = None
    updatable_fields: Tuple[str, ...] = ()

    def __init__(self, db: Session):
        self.db = db
        self.methods = BaseRepository(db, self.model)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_methods(
        self,
        page: int = 1,
        limit: int = 20,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Any], int]:
        query = self.methods.query()
        if is_active is not None:
            query = query.filter(self.model.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(self.model.name.ilike(pattern), self.model.code.ilike(pattern)))
        return self.methods.paginate(self._ordered(query), page, limit)

    def list_active(self) -> List[Any]:
        return self._ordered(self.methods.query().filter(self.model.is_active.is_(True))).all()

    def get_method(self, method_id: UUID):
        method = self.methods.find_by_id(method_id)
        if not method:
            raise AppError.not_found(self.module, self.label, method_id)
        return method

    def get_by_code(self, code: str):
        method = self.methods.find_one_by(code=code)
        if not method:
            raise AppError.not_found(self.module, self.label, code)
        return method

    def get_default(self):
        return self.methods.query().filter(self.model.is_default.is_(True)).first()

    def get_stats(self) -> Dict[str, Any]:
        total = self.methods.count()
        active = self.methods.count(self.methods.query().filter(self.model.is_active.is_(True)))
        default = self.get_default()
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "default_code": default.code if default else None,
        }

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    def create_method(self, data: Dict[str, Any]):
        data = dict(data)
        if self.methods.exists(code=data["code"]):
            raise AppError.conflict(self.module, f"{self.label} code '{data['code']}' already exists")
        self.validate(data, None)
        if data.get("sort_order") is None:
            data["sort_order"] = self.methods.max_position(self.model.sort_order) + 1
        if data.get("is_default"):
            self._require_active(data.get("is_active", True), OperationCode.CREATE)
        try:
            if data.get("is_default"):
                self._clear_default()
            method = self.methods.create(**data)
            self.db.commit()
            self.db.refresh(method)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Created {self.label.lower()} {method.code}")
        return method

    def update_method(self, method_id: UUID, data: Dict[str, Any]):
        method = self.get_method(method_id)
        values = {key: data[key] for key in self.updatable_fields if key in data}
        if "code" in values and values["code"] != method.code and self.methods.exists(code=values["code"]):
            raise AppError.conflict(self.module, f"{self.label} code '{values['code']}' already exists",
                                    OperationCode.UPDATE)
        self.validate(values, method)

        is_active = values.get("is_active", method.is_active)
        is_default = values.get("is_default", method.is_default)
        if is_default:
            self._require_active(is_active, OperationCode.UPDATE)
        try:
            if values.get("is_default"):
                self._clear_default(exclude=method.id)
            self.methods.update(method, values)
            self.db.commit()
            self.db.refresh(method)
        except Exception:
            self.db.rollback()
            raise
        return method

    def delete_method(self, method_id: UUID):
        method = self.get_method(method_id)
        if method.is_default:
            raise AppError.business(self.module, f"The default {self.label.lower()} cannot be deleted",
                                    OperationCode.DELETE)
        in_use = self.db.query(Order.id).filter(getattr(Order, self.order_column) == method.id).first()
        if in_use:
            raise AppError.business(self.module, f"{self.label} {method.code} is used by orders",
                                    OperationCode.DELETE)
        self.methods.soft_delete(method)
        self.db.commit()
        logger.info(f"Deleted {self.label.lower()} {method.code}")

    def set_default(self, method_id: UUID):
        method = self.get_method(method_id)
        self._require_active(method.is_active, OperationCode.UPDATE)
        try:
            self._clear_default(exclude=method.id)
            method.is_default = True
            self.db.commit()
            self.db.refresh(method)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Default {self.label.lower()} is now {method.code}")
        return method

    def toggle_active(self, method_id: UUID):
        method = self.get_method(method_id)
        if method.is_active and method.is_default:
            raise AppError.business(self.module, f"The default {self.label.lower()} cannot be deactivated",
                                    OperationCode.DEACTIVATE)
        method.is_active = not method.is_active
        self.db.commit()
        self.db.refresh(method)
        return method

    def reorder(self, positions: List[Dict[str, Any]]) -> List[Any]:
        """Apply [{"id", "sort_order"}, ...]; every id must exist"""
        methods = {}
        for entry in positions:
            method = self.methods.find_by_id(entry["id"])
            if not method:
                raise AppError.not_found(self.module, self.label, entry["id"])
            methods[method.id] = (method, int(entry["sort_order"]))
        try:
            for method, sort_order in methods.values():
                method.sort_order = sort_order
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._ordered(self.methods.query()).all()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def validate(self, values: Dict[str, Any], method) -> None:
        """Subclass hook checking the merged field values"""

    def _ordered(self, query):
        return query.order_by(self.model.sort_order, self.model.name)

    def _require_active(self, is_active: bool, operation: OperationCode):
        if not is_active:
            raise AppError.business(self.module, f"An inactive {self.label.lower()} cannot be the default",
                                    operation)

    def _clear_default(self, exclude: Optional[UUID] = None):
        query = self.db.query(self.model).filter(self.model.is_default.is_(True))
        if exclude:
            query = query.filter(self.model.id != exclude)
        for method in query.all():
            method.is_default = False

    def _non_negative(self, values: Dict[str, Any], *fields: str):
        for field in fields:
            value = values.get(field)
            if value is not None and Decimal(str(value)) < 0:
                raise AppError.validation(self.module, f"{field} cannot be negative", field=field)
