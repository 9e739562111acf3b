"""Request DTOs for API endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class PreferencesPayload(BaseModel):
    """Hard constraints of a travel query."""

    budget: str | None = Field(
        None,
        description="Budget level such as 'budget', 'mid-range' or 'luxury' (null = any)",
    )
    dietary: list[str] = Field(default_factory=list, description="Dietary restriction tags")
    accessibility: bool = Field(False, description="Whether accessible venues are required")


class QueryRequest(BaseModel):
    """Request DTO for a cache lookup.

    The handler will convert this to a QueryRecord for the service layer.
    """

    location: str = Field(..., description="Destination, e.g. 'Paris, France'", min_length=1)
    categories: list[str] = Field(
        default_factory=list,
        description="Interest categories such as 'attractions' or 'dining'",
    )
    duration: int = Field(..., description="Trip length in days", gt=0)
    preferences: PreferencesPayload = Field(default_factory=PreferencesPayload)
    query_id: str | None = Field(
        None,
        description="Client-assigned request id (generated if omitted)",
    )


class CoordinatesPayload(BaseModel):
    latitude: float
    longitude: float


class ActivityPayload(BaseModel):
    """Single stop within a day plan."""

    place: str = ""
    time: str = ""
    type: str = ""
    description: str = ""
    duration: str = ""
    cost: str = ""
    address: str = ""
    coordinates: CoordinatesPayload | None = None


class ItineraryPayload(BaseModel):
    """Structured or free-text itinerary.

    ``days`` is required for the structured kind, ``text`` for the freeform kind.
    """

    kind: Literal["structured", "freeform"]
    days: dict[str, list[ActivityPayload]] | None = Field(
        None,
        description="Day key ('day_1', 'day_2', ...) to ordered activities",
    )
    text: str | None = Field(None, description="Raw itinerary text")
    summary: str = ""

    @model_validator(mode="after")
    def check_variant(self) -> "ItineraryPayload":
        if self.kind == "structured" and self.days is None:
            raise ValueError("structured itinerary requires 'days'")
        if self.kind == "freeform" and self.text is None:
            raise ValueError("freeform itinerary requires 'text'")
        return self


class StoreCacheRequest(BaseModel):
    """Request DTO for storing a generated itinerary.

    Send either a parsed ``itinerary`` or the generator's raw ``content``,
    which is parsed into one of the two itinerary kinds.
    """

    query: QueryRequest
    itinerary: ItineraryPayload | None = None
    content: str | None = Field(None, description="Raw generator output", min_length=1)
    response_id: str | None = Field(None, description="Response id (generated if omitted)")
    generated_at: datetime | None = Field(None, description="Generation time (now if omitted)")

    @model_validator(mode="after")
    def check_payload(self) -> "StoreCacheRequest":
        if (self.itinerary is None) == (self.content is None):
            raise ValueError("provide exactly one of 'itinerary' or 'content'")
        return self


class WarmCacheRequest(BaseModel):
    """Request DTO for preloading popular destinations."""

    entries: list[StoreCacheRequest] = Field(..., min_length=1)
