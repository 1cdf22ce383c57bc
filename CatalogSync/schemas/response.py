from typing import Optional, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ResponseSchema(BaseModel, Generic[T]):
    status: str
    message: str
    data: Optional[T] = None
    offset: Optional[int] = None  # For pagination
    limit: Optional[int] = None  # For pagination
    total: Optional[int] = None  # Total count for pagination
