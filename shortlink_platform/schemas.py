"""
Pydantic schemas for the HTTP API.

Wire names are camelCase (`customAlias`, `shortUrl`, ...); Python attributes are
snake_case. Responses are built from the dicts produced by
`shortlink_platform.analytics.analytics`.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ShortenRequest(_CamelModel):
    """Request payload for creating a new short link."""
    url: str = ""
    custom_alias: Optional[str] = Field(default=None, alias="customAlias")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")


class ShortenResponse(_CamelModel):
    code: str
    short_url: str = Field(alias="shortUrl")
    original_url: str = Field(alias="originalUrl")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    qr_code: str = Field(alias="qrCode")


class LinkOverview(_CamelModel):
    code: str
    original_url: str = Field(alias="originalUrl")
    created_at: datetime = Field(alias="createdAt")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    total_clicks: int = Field(alias="totalClicks")
    unique_visitors: int = Field(alias="uniqueVisitors")


class LinkDetails(LinkOverview):
    short_url: str = Field(alias="shortUrl")
    last_accessed: Optional[datetime] = Field(default=None, alias="lastAccessed")
    country_counts: Dict[str, int] = Field(default_factory=dict, alias="countryCounts")
    qr_code: str = Field(alias="qrCode")
