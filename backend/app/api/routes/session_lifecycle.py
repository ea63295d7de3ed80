"""Session Lifecycle — booking, teacher decisions, confirmation, cancellation and rating.

Invariants:
    - The acting party is always the bearer-token account, never a body field
    - Handlers contain no business logic: SessionLedgerService owns every transition
    - Every transition returns the updated session; errors render via error_handlers.py

Design Decisions:
    - PATCH for transitions on an existing session, POST for booking
    - Rating body validated by core (INVALID_RATING) rather than by Pydantic bounds
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_account_id, get_session_service
from app.core.domain_types import AccountId
from app.schemas.session import (
    RatingInput, SessionCreate, SessionListResponse, SessionResponse,
)
from app.services.session_ledger import SessionLedgerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


@router.post(
    "", response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    body: SessionCreate,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Request a session with a teacher."""
    session = await service.create(
        requester_id=caller_id,
        teacher_id=body.teacher_id,
        skill=body.skill,
        topic=body.topic,
        time_slot=body.time_slot,
        stake_coins=body.stake_coins,
    )
    return SessionResponse.model_validate(session)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Sessions where the caller is requester or teacher, newest first."""
    sessions = await service.list_for(caller_id)
    return SessionListResponse(
        sessions=[SessionResponse.model_validate(s) for s in sessions],
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    session = await service.get(session_id, caller_id)
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}/accept", response_model=SessionResponse)
async def accept_session(
    session_id: UUID,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Teacher accepts; requester's credit is consumed or stake escrowed."""
    session = await service.accept(session_id, caller_id)
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}/reject", response_model=SessionResponse)
async def reject_session(
    session_id: UUID,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    session = await service.reject(session_id, caller_id)
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}/confirm", response_model=SessionResponse)
async def confirm_session(
    session_id: UUID,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Mark the caller's side done. Both sides done -> completed and settled."""
    session = await service.confirm(session_id, caller_id)
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: UUID,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Cancel a pending or accepted session. The canceller loses reputation."""
    session = await service.cancel(session_id, caller_id)
    return SessionResponse.model_validate(session)


@router.patch("/{session_id}/rate", response_model=SessionResponse)
async def rate_session(
    session_id: UUID,
    body: RatingInput,
    caller_id: AccountId = Depends(get_current_account_id),
    service: SessionLedgerService = Depends(get_session_service),
):
    """Rate the other party. Both ratings in -> closed."""
    session = await service.rate(session_id, caller_id, body.rating)
    return SessionResponse.model_validate(session)
