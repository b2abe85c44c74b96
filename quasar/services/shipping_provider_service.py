"""
Shipping provider service: carrier catalog and tracking links
"""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.fulfillment import (DEFAULT_PROVIDER_SERVICES,
                                       OrderFulfillment, ShippingProvider)
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)

TRACKING_PLACEHOLDER = "{tracking_number}"

_UPDATABLE_FIELDS = (
    "name", "website", "description", "tracking_url_template", "delivery_time_estimate", "is_active",
)


class ShippingProviderService:

    def __init__(self, db: Session):
        self.db = db
        self.providers = BaseRepository(db, ShippingProvider)

    def list_providers(
        self,
        page: int = 1,
        limit: int = 20,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ShippingProvider], int]:
        query = self.providers.query()
        if is_active is not None:
            query = query.filter(ShippingProvider.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                ShippingProvider.name.ilike(pattern),
                ShippingProvider.code.ilike(pattern),
                ShippingProvider.description.ilike(pattern),
            ))
        return self.providers.paginate(query.order_by(ShippingProvider.name), page, limit)

    def get_provider(self, provider_id: UUID) -> ShippingProvider:
        provider = self.providers.find_by_id(provider_id)
        if not provider:
            raise AppError.not_found(ModuleCode.FULFILLMENT, "Shipping provider", provider_id)
        return provider

    def get_by_code(self, code: str) -> ShippingProvider:
        provider = self.providers.find_one_by(code=code.upper())
        if not provider:
            raise AppError.not_found(ModuleCode.FULFILLMENT, "Shipping provider", code)
        return provider

    def create_provider(self, data: Dict[str, Any]) -> ShippingProvider:
        """Codes are stored upper-case; unspecified service flags take their defaults"""
        code = data["code"].upper()
        if self.providers.exists(code=code):
            raise AppError.conflict(ModuleCode.FULFILLMENT, f"Shipping provider with code '{code}' already exists")
        self._check_template(data.get("tracking_url_template"), OperationCode.CREATE)

        values = {key: data[key] for key in _UPDATABLE_FIELDS if key in data}
        values["code"] = code
        values["services"] = {**DEFAULT_PROVIDER_SERVICES, **(data.get("services") or {})}
        values["contact_info"] = data.get("contact_info")
        try:
            provider = self.providers.create(**values)
            self.db.commit()
            self.db.refresh(provider)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Created shipping provider {provider.code}")
        return provider

    def update_provider(self, provider_id: UUID, data: Dict[str, Any]) -> ShippingProvider:
        """Partial update; `services` and `contact_info` are merged into the stored values"""
        provider = self.get_provider(provider_id)
        if "tracking_url_template" in data:
            self._check_template(data["tracking_url_template"], OperationCode.UPDATE)

        values = {key: data[key] for key in _UPDATABLE_FIELDS if key in data}
        if data.get("services"):
            values["services"] = {**DEFAULT_PROVIDER_SERVICES, **(provider.services or {}), **data["services"]}
        if data.get("contact_info"):
            values["contact_info"] = {**(provider.contact_info or {}), **data["contact_info"]}
        try:
            self.providers.update(provider, values)
            self.db.commit()
            self.db.refresh(provider)
        except Exception:
            self.db.rollback()
            raise
        return provider

    def set_active(self, provider_id: UUID, is_active: bool) -> ShippingProvider:
        provider = self.get_provider(provider_id)
        provider.is_active = is_active
        self.db.commit()
        self.db.refresh(provider)
        logger.info(f"Shipping provider {provider.code} {'activated' if is_active else 'deactivated'}")
        return provider

    def delete_provider(self, provider_id: UUID):
        provider = self.get_provider(provider_id)
        in_use = self.db.query(OrderFulfillment.id).filter(
            OrderFulfillment.shipping_provider_id == provider.id
        ).first()
        if in_use:
            raise AppError.business(ModuleCode.FULFILLMENT,
                                    f"Shipping provider {provider.code} is used by fulfillments; deactivate it instead",
                                    OperationCode.DELETE)
        self.providers.soft_delete(provider)
        self.db.commit()
        logger.info(f"Deleted shipping provider {provider.code}")

    def tracking_url(self, provider_id: UUID, tracking_number: str) -> Optional[str]:
        """Tracking link for a parcel, None when the provider has no template"""
        return self.get_provider(provider_id).tracking_url(tracking_number)

    def get_stats(self) -> Dict[str, Any]:
        providers = self.providers.query().all()

        def offering(service: str) -> int:
            return sum(1 for p in providers if (p.services or DEFAULT_PROVIDER_SERVICES).get(service))

        return {
            "total": len(providers),
            "active": sum(1 for p in providers if p.is_active),
            "with_tracking": sum(1 for p in providers if p.tracking_url_template),
            "domestic": offering("domestic"),
            "international": offering("international"),
            "express": offering("express"),
        }

    @staticmethod
    def _check_template(template: Optional[str], operation: OperationCode):
        if template and TRACKING_PLACEHOLDER not in template:
            raise AppError.validation(ModuleCode.FULFILLMENT,
                                      f"Tracking URL must contain the {TRACKING_PLACEHOLDER} placeholder",
                                      operation, field="tracking_url_template")
