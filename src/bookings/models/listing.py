"""Listing model.

Only the attributes the booking core reasons about. Descriptions, media and
pricing live with the listing catalogue, not here.
"""

from pydantic import BaseModel, ConfigDict, Field


class Listing(BaseModel):
    """A bookable resource owned by a host."""

    model_config = ConfigDict(strict=False)

    listing_id: str = Field(..., description="Unique listing ID")
    host_id: str = Field(..., description="Identity of the owning host")
    max_guests: int = Field(..., ge=1, description="Guest capacity")
