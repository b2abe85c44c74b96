"""
Admin API routes for customers and their address book
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from quasar.core.database import get_db
from quasar.core.logging_config import LoggingConfig
from quasar.core.permissions import require_permission
from quasar.core.responses import ResponseService
from quasar.models.customer import AddressType, CustomerStatus, CustomerType
from quasar.models.user import User
from quasar.services.customer_service import CustomerService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/admin/customers", tags=["admin-customers"])


class CustomerCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=255)
    status: CustomerStatus = CustomerStatus.ACTIVE
    customer_type: CustomerType = CustomerType.INDIVIDUAL
    marketing_opt_in: bool = False
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=255)
    status: Optional[CustomerStatus] = None
    customer_type: Optional[CustomerType] = None
    marketing_opt_in: Optional[bool] = None
    notes: Optional[str] = None


class AddressCreate(BaseModel):
    country_id: UUID
    address_type: Optional[AddressType] = None
    label: Optional[str] = Field(None, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    address_line_1: str = Field(..., min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=50)
    delivery_instructions: Optional[str] = None
    is_default: bool = False


class AddressUpdate(BaseModel):
    country_id: Optional[UUID] = None
    address_type: Optional[AddressType] = None
    label: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    company: Optional[str] = Field(None, max_length=255)
    address_line_1: Optional[str] = Field(None, min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=50)
    delivery_instructions: Optional[str] = None
    is_default: Optional[bool] = None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone_number: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    customer_type: str
    marketing_opt_in: bool
    total_orders: int
    total_spent: Decimal
    last_order_at: Optional[datetime] = None
    loyalty_points: int
    notes: Optional[str] = None
    version: int
    created_at: datetime


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    country_id: UUID
    config_id: Optional[UUID] = None
    address_type: str
    label: Optional[str] = None
    first_name: str
    last_name: str
    company: Optional[str] = None
    address_line_1: str
    address_line_2: Optional[str] = None
    city: str
    province: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    delivery_instructions: Optional[str] = None
    is_default: bool


def _enum_values(data: dict) -> dict:
    return {key: getattr(value, "value", value) for key, value in data.items()}


@router.get("")
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[CustomerStatus] = None,
    customer_type: Optional[CustomerType] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:customer")),
):
    items, total = CustomerService(db).list_customers(
        page=page,
        limit=limit,
        search=search,
        status=status.value if status else None,
        customer_type=customer_type.value if customer_type else None,
    )
    return ResponseService.list([CustomerResponse.model_validate(c) for c in items], total, page, limit)


@router.get("/stats")
async def customer_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:customer")),
):
    return ResponseService.success(CustomerService(db).get_stats())


@router.get("/{customer_id}")
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:customer")),
):
    return ResponseService.success(CustomerResponse.model_validate(CustomerService(db).get_customer(customer_id)))


@router.post("", status_code=201)
async def create_customer(
    request: CustomerCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create:any:customer")),
):
    customer = CustomerService(db).create_customer(_enum_values(request.model_dump()), actor_id=user.id)
    return ResponseService.created(CustomerResponse.model_validate(customer))


@router.put("/{customer_id}")
async def update_customer(
    customer_id: UUID,
    request: CustomerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:customer")),
):
    customer = CustomerService(db).update_customer(
        customer_id, _enum_values(request.model_dump(exclude_unset=True)), actor_id=user.id
    )
    return ResponseService.success(CustomerResponse.model_validate(customer))


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("delete:any:customer")),
):
    CustomerService(db).delete_customer(customer_id, actor_id=user.id)
    return ResponseService.success({"id": customer_id, "deleted": True})


# Address book

@router.get("/{customer_id}/addresses")
async def list_addresses(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:customer")),
):
    addresses = CustomerService(db).list_addresses(customer_id)
    return ResponseService.success([AddressResponse.model_validate(a) for a in addresses])


@router.get("/address-config/{country_id}")
async def get_address_config(
    country_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("read:any:customer")),
):
    """Effective address rules of a country"""
    return ResponseService.success(CustomerService(db).get_address_config(country_id))


@router.post("/{customer_id}/addresses", status_code=201)
async def add_address(
    customer_id: UUID,
    request: AddressCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:customer")),
):
    address = CustomerService(db).add_address(customer_id, _enum_values(request.model_dump(exclude_none=True)))
    return ResponseService.created(AddressResponse.model_validate(address))


@router.put("/{customer_id}/addresses/{address_id}")
async def update_address(
    customer_id: UUID,
    address_id: UUID,
    request: AddressUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:customer")),
):
    address = CustomerService(db).update_address(
        customer_id, address_id, _enum_values(request.model_dump(exclude_unset=True))
    )
    return ResponseService.success(AddressResponse.model_validate(address))


@router.post("/{customer_id}/addresses/{address_id}/default")
async def set_default_address(
    customer_id: UUID,
    address_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:customer")),
):
    address = CustomerService(db).set_default_address(customer_id, address_id)
    return ResponseService.success(AddressResponse.model_validate(address))


@router.delete("/{customer_id}/addresses/{address_id}")
async def delete_address(
    customer_id: UUID,
    address_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("update:any:customer")),
):
    CustomerService(db).delete_address(customer_id, address_id)
    return ResponseService.success({"id": address_id, "deleted": True})
