"""View Routes — operator occupancy and owner account summaries."""

from fastapi import APIRouter, Depends

from parkledger.api.dependencies import get_ledger, require_operator, require_owner
from parkledger.core.repository_protocols import Identity
from parkledger.schemas.views import AccountResponse, OccupancyResponse
from parkledger.services.session_ledger import SessionLedger

router = APIRouter(prefix="/api/v1/views", tags=["views"])


@router.get("/occupancy", response_model=OccupancyResponse)
async def occupancy(
    _: Identity = Depends(require_operator),
    ledger: SessionLedger = Depends(get_ledger),
):
    view = await ledger.occupancy_view()
    return OccupancyResponse(
        parked_count=view.parked_count,
        available_spots=view.available_spots,
        total_capacity=view.total_capacity,
        pending_revenue=view.pending_revenue,
        occupied_locations=view.occupied_locations,
    )


@router.get("/account", response_model=AccountResponse)
async def account(
    identity: Identity = Depends(require_owner),
    ledger: SessionLedger = Depends(get_ledger),
):
    view = await ledger.account_view(identity.owner_id)
    vehicles = await ledger.registry.list_vehicles(identity.owner_id)
    return AccountResponse(
        total_balance=view.total_balance,
        unpaid_balance=view.unpaid_balance,
        session_count=view.session_count,
        active_count=view.active_count,
        vehicle_count=len(vehicles),
    )
