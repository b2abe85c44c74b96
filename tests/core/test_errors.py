"""
Tests for error codes and AppError
"""
import pytest

from quasar.core.errors import (AppError, CommonErrorCodes, ErrorCodeGenerator,
                                ErrorLevelCode, ModuleCode, OperationCode)


def test_generate_code_layout():
    """Codes are module + operation + level, two digits each"""
    code = ErrorCodeGenerator.generate(ModuleCode.PRODUCT, OperationCode.CREATE, ErrorLevelCode.VALIDATION)
    assert code == "200101"


def test_parse_code():
    parsed = ErrorCodeGenerator.parse("230204")
    assert parsed == {"module_code": 23, "operation_code": 2, "error_level_code": 4}


@pytest.mark.parametrize("code", ["12345", "1234567", "12ab56"])
def test_parse_rejects_malformed_code(code):
    with pytest.raises(ValueError):
        ErrorCodeGenerator.parse(code)


def test_common_codes():
    assert CommonErrorCodes.ORDER_NOT_FOUND == "230204"
    assert CommonErrorCodes.VALIDATION_ERROR == "902801"
    assert CommonErrorCodes.INTERNAL_ERROR == "902710"


def test_not_found_error():
    """Test AppError.not_found message, code and status"""
    error = AppError.not_found(ModuleCode.ORDER, "Order", "abc")
    assert error.message == "Order abc not found"
    assert error.code == "230204"
    assert error.status_code == 404
    assert error.domain == "order"


@pytest.mark.parametrize("factory,status", [
    (AppError.validation, 400),
    (AppError.conflict, 409),
    (AppError.business, 422),
])
def test_factory_status_codes(factory, status):
    error = factory(ModuleCode.CUSTOMER, "boom", field="email")
    assert error.status_code == status
    assert error.details == {"field": "email"}


def test_unmapped_level_is_server_error():
    error = AppError("db down", ModuleCode.SYSTEM, OperationCode.PROCESS, ErrorLevelCode.DATABASE_ERROR)
    assert error.status_code == 500
    assert error.to_dict()["code"] == "902711"
