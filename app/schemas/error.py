"""Error envelope schemas returned by the error translation layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ValidationErrorDetail(BaseModel):
    """Single field-level request validation issue."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    message: str
    invalid_value: Any = Field(default=None, alias="invalidValue")


class ErrorResponse(BaseModel):
    """Top-level API error response body."""

    model_config = ConfigDict(populate_by_name=True)

    instance: str
    status: int = Field(ge=100, le=599)
    message: str | None = None
    retryable: bool = False
    validation_errors: list[ValidationErrorDetail] | None = Field(default=None, alias="validationErrors")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names, omitting absent validation errors."""
        exclude = {"validation_errors"} if self.validation_errors is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)
