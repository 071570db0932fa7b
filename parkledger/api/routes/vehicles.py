"""Vehicle Routes — owner-facing registration, listing and deletion.

Invariants:
    - Every route is scoped to the caller's owner_id (never taken from the body)
    - Deleting another owner's vehicle is a 404, not a 403 (no existence leak)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from parkledger.api.dependencies import get_registry, require_owner
from parkledger.core.repository_protocols import Identity
from parkledger.schemas.vehicle import VehicleCreate, VehicleResponse
from parkledger.services.vehicle_registry import VehicleRegistry

router = APIRouter(prefix="/api/v1/vehicles", tags=["vehicles"])


@router.post(
    "", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED,
)
async def register_vehicle(
    body: VehicleCreate,
    identity: Identity = Depends(require_owner),
    registry: VehicleRegistry = Depends(get_registry),
):
    """Register a vehicle to the caller's account."""
    vehicle = await registry.register_vehicle(
        identity.owner_id, body.license_plate, body.brand, body.color,
    )
    return VehicleResponse.from_model(vehicle)


@router.get("", response_model=list[VehicleResponse])
async def list_vehicles(
    identity: Identity = Depends(require_owner),
    registry: VehicleRegistry = Depends(get_registry),
):
    vehicles = await registry.list_vehicles(identity.owner_id)
    return [VehicleResponse.from_model(v) for v in vehicles]


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: UUID,
    identity: Identity = Depends(require_owner),
    registry: VehicleRegistry = Depends(get_registry),
):
    """Delete a vehicle. 409 while it has an active session."""
    await registry.delete_vehicle(vehicle_id, owner_id=identity.owner_id)
