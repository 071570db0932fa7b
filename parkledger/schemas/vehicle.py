"""Vehicle Schemas — registration input and vehicle output."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from parkledger.core.billing import as_utc


class VehicleCreate(BaseModel):
    """Vehicle registration — plate required, brand/color free-form."""
    license_plate: str = Field(min_length=1, max_length=20)
    brand: str | None = Field(None, max_length=50)
    color: str | None = Field(None, max_length=30)

    @field_validator("license_plate")
    @classmethod
    def strip_plate(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("license_plate cannot be empty or whitespace")
        return v


class VehicleResponse(BaseModel):
    id: UUID
    license_plate: str
    brand: str | None = None
    color: str | None = None
    registered_at: datetime

    @classmethod
    def from_model(cls, vehicle) -> "VehicleResponse":
        return cls(
            id=vehicle.id,
            license_plate=vehicle.license_plate,
            brand=vehicle.brand,
            color=vehicle.color,
            registered_at=as_utc(vehicle.registered_at),
        )
