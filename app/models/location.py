"""
Canonical location model shared by incidents and teams.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Location(BaseModel):
    """
    Normalized location.

    Both alias pairs (lat/lng and latitude/longitude) are always populated
    so downstream consumers can read whichever convention they use.
    Build instances through app.utils.geo.normalize_location.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: str = "Address not provided"
    is_valid: bool = Field(default=False, alias="isValid")
    error: Optional[str] = Field(default=None, description="Why normalization fell back, if it did")

    def to_document(self) -> dict:
        """Storage/response shape (camelCase validity flag, no empty error)."""
        return self.model_dump(by_alias=True, exclude_none=True)
