"""
Shared Pydantic building blocks: camelCase wire models and the response envelope.
"""
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Annotated, Generic, Optional, TypeVar

DataT = TypeVar("DataT")


def _to_naive_utc(value: datetime) -> datetime:
    # Timestamps are stored as naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class CamelModel(BaseModel):
    """Model serialized with camelCase keys, accepting either casing on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class APIResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every JSON endpoint."""
    success: bool = True
    message: str
    data: Optional[DataT] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int
