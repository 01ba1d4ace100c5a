"""Error models for offlined API.

Pydantic models for error responses.
"""

from pydantic import Field

from offline_library.models.base import CamelCaseModel


class ErrorResponse(CamelCaseModel):
    """Standard error response.

    Attributes:
        error: Error message
        detail: Optional additional details
    """

    error: str = Field(..., description="Error message")
    detail: str | None = Field(default=None, description="Additional error details")
