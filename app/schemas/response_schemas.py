from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import Field, field_validator

from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class ApiResponse(BaseModel):
    """Envelope wrapped around every JSON response body"""

    success: bool = Field(..., description="False for any error response")
    status: ResponseStatus = Field(..., description="success or error")
    message: str = Field(..., description="Human-readable summary")
    data: Optional[Any] = Field(default=None, description="Endpoint payload")
    meta: Optional[Dict[str, Any]] = Field(
        default=None, description="Extra context, e.g. error_code and error_type"
    )
    errors: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Per-field validation errors"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="When the response was built (UTC)",
    )
    request_id: Optional[str] = Field(
        default=None, description="Value echoed in the X-Request-ID header"
    )
    path: Optional[str] = Field(default=None, description="Request path")
    version: str = Field(default="1.0", description="Envelope version")

    @field_validator("request_id", mode="after")
    def ensure_request_id(cls, v: Optional[str]) -> str:
        return v or str(uuid.uuid4())
