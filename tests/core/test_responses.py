"""
Tests for the response envelope
"""
from decimal import Decimal
from uuid import uuid4

from quasar.core.errors import AppError, ModuleCode
from quasar.core.responses import ResponseService


def test_success_envelope():
    record_id = uuid4()
    response = ResponseService.success({"id": record_id, "price": Decimal("9.90")})

    assert response["code"] == 200
    assert response["status"] == "OK"
    assert response["errors"] is None
    assert response["data"]["id"] == str(record_id)
    assert response["timestamp"]


def test_created_envelope():
    response = ResponseService.created({"name": "x"})
    assert response["code"] == 201
    assert response["status"] == "CREATED"


def test_list_pagination():
    """Test pagination block for a middle page"""
    response = ResponseService.list([1, 2], total=45, page=2, limit=20)
    assert response["data"] == [1, 2]
    assert response["pagination"] == {
        "totalItems": 45,
        "totalPages": 3,
        "currentPage": 2,
        "pageSize": 20,
        "hasNextPage": True,
        "hasPreviousPage": True,
    }


def test_list_pagination_empty():
    pagination = ResponseService.list([], total=0, page=1, limit=20)["pagination"]
    assert pagination["totalPages"] == 0
    assert pagination["hasNextPage"] is False
    assert pagination["hasPreviousPage"] is False


def test_error_from_app_error():
    error = AppError.business(ModuleCode.LOYALTY, "Insufficient points", balance=5)
    response = ResponseService.from_app_error(error)

    assert response["code"] == 422
    assert response["status"] == "BUSINESS_LOGIC_ERROR"
    assert response["data"] is None
    info = response["errors"][0]
    assert info["@type"] == "ErrorInfo"
    assert info["reason"] == error.code
    assert info["domain"] == "loyalty"
    assert info["message"] == "Insufficient points"
    assert info["metadata"] == {"balance": 5}


def test_error_without_metadata():
    info = ResponseService.error("boom")["errors"][0]
    assert "metadata" not in info
    assert info["domain"] == "system"
