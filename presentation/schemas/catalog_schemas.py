from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RenderResponse(BaseModel):
    view: str = Field(..., description="Name of the view that renders the data")
    data: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    view: str = "error"
    kind: str
    message: str


class HealthResponse(BaseModel):
    status: str
    store: str
    error: Optional[str] = None
