# drama_api/schemas/common.py
import math
from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, Field

T = TypeVar('T')


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1, le=100)
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint: {success, data?, error?, message?, pagination?}"""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    pagination: Optional[Pagination] = None

    @classmethod
    def ok(cls, data=None, message: Optional[str] = None, pagination: Optional[Pagination] = None):
        # Only explicitly set keys are rendered (response_model_exclude_unset)
        fields = {"success": True}
        if data is not None:
            fields["data"] = data
        if message is not None:
            fields["message"] = message
        if pagination is not None:
            fields["pagination"] = pagination
        return cls(**fields)
