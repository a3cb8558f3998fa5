"""
Custom exception classes for the application.

Every error the API can surface derives from AppError, which knows its
HTTP status and renders the standard error body.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateKeyError(ConflictError):
    """A unique field already holds this value (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )
        self.resource = resource
        self.field = field
        self.value = value


class AuthenticationError(AppError):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ProductSKUExistsError(DuplicateKeyError):
    """Product SKU already exists."""

    def __init__(self, sku: str):
        super().__init__(
            resource="Product",
            field="sku",
            value=sku
        )


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


class OrderNotDeletableError(ConflictError):
    """Order already in progress."""

    def __init__(self, order_id: str, status: str):
        super().__init__(
            code="ORDER_NOT_DELETABLE",
            message="Cannot delete order that is already in progress",
            details={"id": order_id, "status": status, "deletable": ["pending", "cancelled"]}
        )


# ===================
# CUSTOMER ERRORS
# ===================

class CustomerNotFoundError(NotFoundError):
    """Customer profile not found."""

    def __init__(self, customer_id: str):
        super().__init__(
            resource="Customer",
            identifier=customer_id,
            code="CUSTOMER_NOT_FOUND"
        )


class CustomerExistsError(DuplicateKeyError):
    """Customer id already registered."""

    def __init__(self, customer_id: str):
        super().__init__(
            resource="Customer",
            field="customer_id",
            value=customer_id
        )


# ===================
# ALERT / RECOMMENDATION ERRORS
# ===================

class AlertNotFoundError(NotFoundError):
    """Alert not found."""

    def __init__(self, alert_id: str):
        super().__init__(
            resource="Alert",
            identifier=alert_id,
            code="ALERT_NOT_FOUND"
        )


class RecommendationNotFoundError(NotFoundError):
    """Recommendation not in the active set."""

    def __init__(self, recommendation_id: str):
        super().__init__(
            resource="Recommendation",
            identifier=recommendation_id,
            code="RECOMMENDATION_NOT_FOUND"
        )


# ===================
# ANALYSIS ERRORS
# ===================

class InsufficientDataError(ValidationError):
    """Not enough purchase history to derive a consumption pattern."""

    def __init__(self, customer_id: Optional[str] = None, product_id: Optional[str] = None):
        super().__init__(
            code="INSUFFICIENT_DATA",
            message="No purchase history available for prediction",
            details={"customer_id": customer_id, "product_id": product_id}
        )


class ModelError(ExternalServiceError):
    """
    Base for expected failures of the hosted model call.

    The recommendation assembler catches these and switches to the
    fallback heuristics. `retryable` tells the gateway whether another
    attempt can help.
    """

    retryable = False

    def __init__(self, message: str, code: str = "MODEL_ERROR", details: Optional[dict] = None):
        super().__init__(
            service="model",
            message=message,
            code=code,
            details=details
        )


class ModelTimeoutError(ModelError):
    """Model call exceeded its timeout."""

    retryable = True

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Model call timed out after {timeout_seconds:.1f}s",
            code="MODEL_TIMEOUT",
            details={"timeout_seconds": timeout_seconds}
        )


class ModelThrottledError(ModelError):
    """Model endpoint rejected the call with a rate limit."""

    retryable = True

    def __init__(self, message: str = "Model endpoint throttled the request"):
        super().__init__(message=message, code="MODEL_THROTTLED")


class ModelServerError(ModelError):
    """Model endpoint failed with a 5xx or the connection dropped."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            code="MODEL_SERVER_ERROR",
            details={"upstream_status": status_code}
        )


class ModelRequestError(ModelError):
    """Model endpoint rejected the request (4xx other than throttling)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            code="MODEL_REQUEST_ERROR",
            details={"upstream_status": status_code}
        )


class ModelResponseParseError(ModelError):
    """Model answered, but not with the expected JSON shape."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            message=message,
            code="MODEL_RESPONSE_PARSE_ERROR",
            details=details
        )


class ModelLowConfidenceError(ModelError):
    """Model answered with an overall confidence below the configured floor."""

    def __init__(self, confidence: float, minimum: float):
        super().__init__(
            message="Model result confidence below threshold",
            code="MODEL_LOW_CONFIDENCE",
            details={"confidence": confidence, "minimum": minimum}
        )


class ModelUnavailableError(ModelError):
    """Model calls are disabled or not configured."""

    def __init__(self, reason: str):
        super().__init__(
            message="Model analysis unavailable",
            code="MODEL_UNAVAILABLE",
            details={"reason": reason}
        )


class AnalysisUnavailableError(AppError):
    """Both the model and the fallback heuristics failed (503)."""

    def __init__(self, customer_id: str, reason: str):
        super().__init__(
            code="ANALYSIS_UNAVAILABLE",
            message="Customer analysis is temporarily unavailable",
            status_code=503,
            details={"customer_id": customer_id, "reason": reason}
        )
