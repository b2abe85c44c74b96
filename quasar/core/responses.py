"""
Standard JSON response envelope shared by all API routes
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

from quasar.core.errors import AppError, CommonErrorCodes


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResponseService:
    """Builds `{code, status, data, errors, timestamp}` envelopes"""

    @staticmethod
    def success(data: Any = None, code: int = 200, status: str = "OK") -> Dict[str, Any]:
        return {
            "code": code,
            "status": status,
            "data": jsonable_encoder(data),
            "errors": None,
            "timestamp": _now(),
        }

    @staticmethod
    def created(data: Any = None) -> Dict[str, Any]:
        return ResponseService.success(data, code=201, status="CREATED")

    @staticmethod
    def pagination(total: int, page: int, limit: int) -> Dict[str, Any]:
        total_pages = math.ceil(total / limit) if limit else 0
        return {
            "totalItems": total,
            "totalPages": total_pages,
            "currentPage": page,
            "pageSize": limit,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        }

    @staticmethod
    def list(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
        response = ResponseService.success(items)
        response["pagination"] = ResponseService.pagination(total, page, limit)
        return response

    @staticmethod
    def error(
        message: str,
        reason: str = CommonErrorCodes.INTERNAL_ERROR,
        domain: str = "system",
        http_code: int = 500,
        status: str = "ERROR",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        error_info = {
            "@type": "ErrorInfo",
            "reason": reason,
            "domain": domain,
            "message": message,
        }
        if metadata:
            error_info["metadata"] = jsonable_encoder(metadata)
        return {
            "code": http_code,
            "status": status,
            "data": None,
            "errors": [error_info],
            "timestamp": _now(),
        }

    @staticmethod
    def from_app_error(exc: AppError) -> Dict[str, Any]:
        return ResponseService.error(
            exc.message,
            reason=exc.code,
            domain=exc.domain,
            http_code=exc.status_code,
            status=exc.level.name,
            metadata=exc.details,
        )
