from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRICE_PATTERN = r"^\${1,4}$"


class QueryParams(BaseModel):
    food: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    price: str | None = Field(default=None, pattern=PRICE_PATTERN, description='"$" to "$$$$"')
    open_now: bool | None = None
    radius: int | float | None = Field(default=None, gt=0, description="Search radius in meters")

    @field_validator("food", "location", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class Category(BaseModel):
    alias: str = ""
    title: str = ""


class Coordinates(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class Address(BaseModel):
    address1: str | None = None
    address2: str | None = None
    address3: str | None = None
    city: str | None = ""
    zip_code: str | None = ""
    country: str | None = ""
    state: str | None = ""
    display_address: list[str] = Field(default_factory=list)


class Restaurant(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    image_url: str | None = None
    url: str | None = ""
    review_count: int = 0
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    price: str | None = None
    location: Address = Field(default_factory=Address)
    categories: list[Category] = Field(default_factory=list)
    coordinates: Coordinates = Field(default_factory=Coordinates)
    phone: str | None = ""
    display_phone: str | None = ""
