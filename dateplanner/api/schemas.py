"""API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from dateplanner.domain.models import EventRecord


class DateFlowRequest(BaseModel):
    location: str = Field(min_length=1, max_length=200, description="City or area for the date")
    user_profile: dict[str, Any] = Field(default_factory=dict, description="Requester profile")
    partner_profile: dict[str, Any] = Field(default_factory=dict, description="Partner profile")
    preferences: dict[str, Any] = Field(default_factory=dict, description="Free-form preferences")


class DateIdeasRequest(BaseModel):
    location: str = Field(min_length=1, max_length=200)
    partner_profile: dict[str, Any] = Field(default_factory=dict)


class EventsRequest(BaseModel):
    location: str = Field(min_length=1, max_length=200)
    neighborhood: str = Field(default="", max_length=200)
    radius: int = Field(default=10, ge=1, le=300, description="Search radius in miles")
    user_profile: dict[str, Any] = Field(default_factory=dict)
    partner_profile: dict[str, Any] = Field(default_factory=dict)


class MessageItem(BaseModel):
    role: str = Field(default="user", max_length=32)
    content: str = Field(default="", max_length=4000)


class PlanExtractionRequest(BaseModel):
    messages: list[MessageItem] = Field(default_factory=list, max_length=200)


class EventsResponse(BaseModel):
    location: str = ""
    events: list[EventRecord] = Field(default_factory=list)
    source: str = Field(default="catalogs", description="catalogs / cache / fallback")
    curated_by: str = Field(default="", description="ai / ranked / empty when not curated")
    catalog_counts: dict[str, int] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = ""
