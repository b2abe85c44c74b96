"""
Error code system and application exceptions

Error codes follow the XXYYZZ layout: module (XX), operation (YY), error level (ZZ).
Example: 200101 = product (20) + create (01) + validation (01).
"""
from enum import IntEnum
from typing import Any, Dict, Optional


class ModuleCode(IntEnum):
    """Domain the error belongs to (10-99)"""
    # Core system
    USER = 10
    AUTH = 11
    PERMISSION = 12
    TRANSLATION = 13
    SEO = 14
    SETTINGS = 15
    # E-commerce
    PRODUCT = 20
    CATEGORY = 21
    CART = 22
    ORDER = 23
    INVENTORY = 24
    ADDRESS_BOOK = 25
    CUSTOMER = 26
    FULFILLMENT = 27
    LOYALTY = 28
    DELIVERY = 29
    # Content management
    NEWS = 30
    ARTICLE = 31
    SECTION = 34
    COMPONENT = 35
    # Payments
    PAYMENT = 50
    GATEWAY = 51
    TRANSACTION = 52
    REFUND = 53
    # Communication
    NOTIFICATION = 60
    EMAIL = 61
    EMAIL_CHANNEL = 62
    SMS = 63
    # Files
    FILE = 70
    MEDIA = 71
    UPLOAD = 72
    # Analytics
    ANALYTICS = 80
    REPORT = 81
    DASHBOARD = 82
    # System
    SYSTEM = 90
    CONFIG = 91
    AUDIT = 92
    MIGRATION = 93


class OperationCode(IntEnum):
    """Operation in progress when the error occurred (01-99)"""
    CREATE = 1
    READ = 2
    UPDATE = 3
    DELETE = 4
    LOGIN = 5
    REGISTER = 6
    LOGOUT = 7
    REFRESH = 8
    VERIFY = 9
    ACTIVATE = 10
    DEACTIVATE = 11
    APPROVE = 12
    REJECT = 13
    PUBLISH = 14
    ARCHIVE = 15
    RESTORE = 16
    SEARCH = 17
    FILTER = 18
    SORT = 19
    EXPORT = 20
    IMPORT = 21
    SUBSCRIBE = 22
    UNSUBSCRIBE = 23
    PURCHASE = 24
    REFUND = 25
    CANCEL = 26
    PROCESS = 27
    VALIDATE = 28
    SEND = 29
    RECEIVE = 30
    UPLOAD = 31
    DOWNLOAD = 32
    BACKUP = 33
    RESTORE_DATA = 34
    SYNC = 35


class ErrorLevelCode(IntEnum):
    """Kind of failure (01-99)"""
    # Client errors
    VALIDATION = 1
    AUTHORIZATION = 2
    FORBIDDEN = 3
    NOT_FOUND = 4
    CONFLICT = 5
    RATE_LIMIT = 6
    # Server errors
    SERVER_ERROR = 10
    DATABASE_ERROR = 11
    NETWORK_ERROR = 12
    TIMEOUT_ERROR = 13
    # External services
    EXTERNAL_API_ERROR = 20
    PAYMENT_ERROR = 21
    EMAIL_ERROR = 22
    SMS_ERROR = 23
    STORAGE_ERROR = 24
    # Business rules
    BUSINESS_LOGIC_ERROR = 30
    SUBSCRIPTION_ERROR = 31
    INVENTORY_ERROR = 32
    PRICING_ERROR = 33
    # Security
    SECURITY_ERROR = 40
    AUTHENTICATION_ERROR = 41
    TOKEN_ERROR = 42
    ENCRYPTION_ERROR = 43
    # Configuration
    CONFIG_ERROR = 50
    ENVIRONMENT_ERROR = 51
    DEPENDENCY_ERROR = 52

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self, 500)


_HTTP_STATUS = {
    ErrorLevelCode.VALIDATION: 400,
    ErrorLevelCode.AUTHORIZATION: 401,
    ErrorLevelCode.FORBIDDEN: 403,
    ErrorLevelCode.NOT_FOUND: 404,
    ErrorLevelCode.CONFLICT: 409,
    ErrorLevelCode.RATE_LIMIT: 429,
    ErrorLevelCode.BUSINESS_LOGIC_ERROR: 422,
    ErrorLevelCode.INVENTORY_ERROR: 422,
    ErrorLevelCode.PRICING_ERROR: 422,
    ErrorLevelCode.SECURITY_ERROR: 403,
    ErrorLevelCode.AUTHENTICATION_ERROR: 401,
    ErrorLevelCode.TOKEN_ERROR: 401,
}


class ErrorCodeGenerator:
    """Builds and parses XXYYZZ error codes"""

    @staticmethod
    def generate(module: int, operation: int, level: int) -> str:
        return f"{int(module):02d}{int(operation):02d}{int(level):02d}"

    @staticmethod
    def parse(code: str) -> Dict[str, int]:
        if len(code) != 6 or not code.isdigit():
            raise ValueError("Error code must be exactly 6 digits")
        return {
            "module_code": int(code[0:2]),
            "operation_code": int(code[2:4]),
            "error_level_code": int(code[4:6]),
        }


class CommonErrorCodes:
    """Frequently used error codes"""
    USER_NOT_FOUND = ErrorCodeGenerator.generate(ModuleCode.USER, OperationCode.READ, ErrorLevelCode.NOT_FOUND)
    USER_VALIDATION_ERROR = ErrorCodeGenerator.generate(ModuleCode.USER, OperationCode.CREATE, ErrorLevelCode.VALIDATION)
    LOGIN_FAILED = ErrorCodeGenerator.generate(ModuleCode.AUTH, OperationCode.LOGIN, ErrorLevelCode.AUTHENTICATION_ERROR)
    REGISTER_CONFLICT = ErrorCodeGenerator.generate(ModuleCode.AUTH, OperationCode.REGISTER, ErrorLevelCode.CONFLICT)
    TOKEN_EXPIRED = ErrorCodeGenerator.generate(ModuleCode.AUTH, OperationCode.REFRESH, ErrorLevelCode.TOKEN_ERROR)
    PERMISSION_DENIED = ErrorCodeGenerator.generate(ModuleCode.PERMISSION, OperationCode.VERIFY, ErrorLevelCode.FORBIDDEN)
    PRODUCT_NOT_FOUND = ErrorCodeGenerator.generate(ModuleCode.PRODUCT, OperationCode.READ, ErrorLevelCode.NOT_FOUND)
    PRODUCT_OUT_OF_STOCK = ErrorCodeGenerator.generate(ModuleCode.PRODUCT, OperationCode.PURCHASE, ErrorLevelCode.INVENTORY_ERROR)
    ORDER_NOT_FOUND = ErrorCodeGenerator.generate(ModuleCode.ORDER, OperationCode.READ, ErrorLevelCode.NOT_FOUND)
    PAYMENT_FAILED = ErrorCodeGenerator.generate(ModuleCode.PAYMENT, OperationCode.PROCESS, ErrorLevelCode.PAYMENT_ERROR)
    PAYMENT_GATEWAY_ERROR = ErrorCodeGenerator.generate(ModuleCode.GATEWAY, OperationCode.PROCESS, ErrorLevelCode.EXTERNAL_API_ERROR)
    VALIDATION_ERROR = ErrorCodeGenerator.generate(ModuleCode.SYSTEM, OperationCode.VALIDATE, ErrorLevelCode.VALIDATION)
    INTERNAL_ERROR = ErrorCodeGenerator.generate(ModuleCode.SYSTEM, OperationCode.PROCESS, ErrorLevelCode.SERVER_ERROR)
    DATABASE_CONNECTION_ERROR = ErrorCodeGenerator.generate(ModuleCode.SYSTEM, OperationCode.PROCESS, ErrorLevelCode.DATABASE_ERROR)


class AppError(Exception):
    """Application error carrying an XXYYZZ code and an HTTP status"""

    def __init__(
        self,
        message: str,
        module: ModuleCode = ModuleCode.SYSTEM,
        operation: OperationCode = OperationCode.PROCESS,
        level: ErrorLevelCode = ErrorLevelCode.SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.module = module
        self.operation = operation
        self.level = level
        self.details = details or {}

    @property
    def code(self) -> str:
        return ErrorCodeGenerator.generate(self.module, self.operation, self.level)

    @property
    def status_code(self) -> int:
        return self.level.http_status

    @property
    def domain(self) -> str:
        return self.module.name.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain,
            "details": self.details,
        }

    @classmethod
    def not_found(cls, module: ModuleCode, what: str, identifier: Any = None) -> "AppError":
        message = f"{what} not found" if identifier is None else f"{what} {identifier} not found"
        return cls(message, module, OperationCode.READ, ErrorLevelCode.NOT_FOUND)

    @classmethod
    def validation(cls, module: ModuleCode, message: str, operation: OperationCode = OperationCode.VALIDATE,
                   **details) -> "AppError":
        return cls(message, module, operation, ErrorLevelCode.VALIDATION, details)

    @classmethod
    def conflict(cls, module: ModuleCode, message: str, operation: OperationCode = OperationCode.CREATE,
                 **details) -> "AppError":
        return cls(message, module, operation, ErrorLevelCode.CONFLICT, details)

    @classmethod
    def business(cls, module: ModuleCode, message: str, operation: OperationCode = OperationCode.PROCESS,
                 **details) -> "AppError":
        return cls(message, module, operation, ErrorLevelCode.BUSINESS_LOGIC_ERROR, details)


class MigrationError(Exception):
    """A migration step failed; the run was halted"""

    def __init__(self, message: str, revision: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.revision = revision
        self.cause = cause
