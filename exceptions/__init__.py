"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateKeyError,
    AuthenticationError,
    ExternalServiceError,
    DatabaseError,

    # Products
    ProductNotFoundError,
    ProductSKUExistsError,

    # Orders
    OrderNotFoundError,
    OrderNotDeletableError,

    # Customers
    CustomerNotFoundError,
    CustomerExistsError,

    # Alerts / Recommendations
    AlertNotFoundError,
    RecommendationNotFoundError,

    # Analysis
    InsufficientDataError,
    ModelError,
    ModelTimeoutError,
    ModelThrottledError,
    ModelServerError,
    ModelRequestError,
    ModelResponseParseError,
    ModelLowConfidenceError,
    ModelUnavailableError,
    AnalysisUnavailableError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateKeyError",
    "AuthenticationError",
    "ExternalServiceError",
    "DatabaseError",

    # Product
    "ProductNotFoundError",
    "ProductSKUExistsError",

    # Order
    "OrderNotFoundError",
    "OrderNotDeletableError",

    # Customer
    "CustomerNotFoundError",
    "CustomerExistsError",

    # Alert / Recommendation
    "AlertNotFoundError",
    "RecommendationNotFoundError",

    # Analysis
    "InsufficientDataError",
    "ModelError",
    "ModelTimeoutError",
    "ModelThrottledError",
    "ModelServerError",
    "ModelRequestError",
    "ModelResponseParseError",
    "ModelLowConfidenceError",
    "ModelUnavailableError",
    "AnalysisUnavailableError",
]
