"""
Shared Models
=============

Pydantic models shared across services.

Models:
- ApiModel (camelCase JSON base)
- ErrorResponse, HealthResponse
"""

from shared.models.common import (
    ApiModel,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ApiModel",
    "ErrorResponse",
    "HealthResponse",
]
