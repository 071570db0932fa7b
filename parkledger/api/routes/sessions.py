"""Session Routes — operator entry/exit and owner payment.

Invariants:
    - Entry, exit and mark-exited require the operator role
    - Pay and pay-all require the owner role and only touch the caller's sessions
    - Each response carries duration and cost derived at response time

Design Decisions:
    - Static paths (/mine, /pay-all) declared before /{session_id} routes
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from parkledger.api.dependencies import get_ledger, require_operator, require_owner
from parkledger.core.repository_protocols import Identity
from parkledger.schemas.parking_session import (
    EntryRequest,
    ExitRequest,
    SessionResponse,
    SettlementFailureResponse,
    SettlementReportResponse,
)
from parkledger.services.session_ledger import SessionLedger

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


@router.post(
    "/entry", response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_entry(
    body: EntryRequest,
    _: Identity = Depends(require_operator),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Vehicle entered a slot. 409 if the slot is occupied."""
    session = await ledger.record_entry(
        body.license_plate, body.location, owner_id=body.owner_id,
    )
    return SessionResponse.from_model(session, ledger.clock.now())


@router.post("/exit", response_model=SessionResponse)
async def record_exit(
    body: ExitRequest,
    _: Identity = Depends(require_operator),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Vehicle left a slot. 404 if no active session matches."""
    session = await ledger.record_exit(body.license_plate, body.location)
    return SessionResponse.from_model(session, ledger.clock.now())


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    active_only: bool = Query(True),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    _: Identity = Depends(require_operator),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Operator list — active sessions by default, oldest entry first.

    Unpaged unless limit is given, so a full lot is never truncated.
    """
    sessions = await ledger.list_sessions(
        active_only=active_only, limit=limit, offset=offset,
    )
    now = ledger.clock.now()
    return [SessionResponse.from_model(s, now) for s in sessions]


@router.get("/mine", response_model=list[SessionResponse])
async def list_my_sessions(
    identity: Identity = Depends(require_owner),
    ledger: SessionLedger = Depends(get_ledger),
):
    sessions = await ledger.list_sessions(owner_id=identity.owner_id)
    now = ledger.clock.now()
    return [SessionResponse.from_model(s, now) for s in sessions]


@router.post("/pay-all", response_model=SettlementReportResponse)
async def settle_all_unpaid(
    identity: Identity = Depends(require_owner),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Pay every unpaid session of the caller; failures reported, not raised."""
    report = await ledger.settle_all_unpaid(identity.owner_id)
    now = ledger.clock.now()
    return SettlementReportResponse(
        settled=[SessionResponse.from_model(s, now) for s in report.settled],
        failed=[
            SettlementFailureResponse(
                session_id=f.session_id, code=f.code, message=f.message,
            )
            for f in report.failed
        ],
        total_settled=report.total_settled,
    )


@router.post("/{session_id}/pay", response_model=SessionResponse)
async def settle_payment(
    session_id: UUID,
    identity: Identity = Depends(require_owner),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Pay one session. 409 if already paid."""
    session = await ledger.settle_payment(session_id, owner_id=identity.owner_id)
    return SessionResponse.from_model(session, ledger.clock.now())


@router.post("/{session_id}/mark-exited", response_model=SessionResponse)
async def mark_exited(
    session_id: UUID,
    _: Identity = Depends(require_operator),
    ledger: SessionLedger = Depends(get_ledger),
):
    """Operator dashboard "mark as exited". 409 if not active."""
    session = await ledger.mark_exited(session_id)
    return SessionResponse.from_model(session, ledger.clock.now())
