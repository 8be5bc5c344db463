"""业务异常与统一错误响应"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException


class CatalogError(HTTPException):
    """带错误码的业务异常基类"""
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(status_code=self.status_code, detail=message or self.message)
        self.details = details or {}


class CatalogValidationError(CatalogError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class ProductNotFoundError(CatalogError):
    status_code = 404
    code = "PRODUCT_NOT_FOUND"
    message = "Product not found"


class DuplicateSkuError(CatalogError):
    status_code = 409
    code = "DUPLICATE_SKU"
    message = "SKU already exists"


class ConcurrentModificationError(CatalogError):
    status_code = 429
    code = "CONCURRENT_MODIFICATION"
    message = "SKU is being modified by another request, please retry"


# 非业务异常按状态码归类
STATUS_CODES = {
    400: "VALIDATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_ERROR",
}


def error_body(
    error: str,
    code: str,
    path: str,
    details: Optional[Dict[str, List[str]]] = None,
) -> dict:
    """统一错误响应体"""
    return {
        "error": error,
        "code": code,
        "details": details or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }
