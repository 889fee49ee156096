"""
api/routes/v1/internship.py -- Internship reference data and technical task submissions.

Routes:
  GET   /api/v1/directions                          -- list directions (public)
  POST  /api/v1/directions                          -- add a direction (admin)
  GET   /api/v1/streams                             -- list streams (public)
  POST  /api/v1/technical-tests                     -- submit own technical task (verified user)
  GET   /api/v1/technical-tests/me                  -- read own submission (verified user)
  PATCH /api/v1/technical-tests/{user_id}/review    -- mark a submission passed/failed (admin, mentor)

Submitting sets the user's is_sent_technical_task flag and reviewing sets
is_passed_technical_task; both feed the "task" block of the login response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import (
    DirectionCreate,
    DirectionResponse,
    StreamResponse,
    TechnicalTestResponse,
    TechnicalTestReview,
    TechnicalTestSubmit,
)
from auth.dependencies import require_roles, require_verified
from auth.models import ERole, User
from auth.store import UserStore
from internship.models import TechnicalTestResult
from internship.store import InternshipStore

router = APIRouter()


def _to_response(result: TechnicalTestResult) -> TechnicalTestResponse:
    return TechnicalTestResponse(
        id=result.id,
        user_id=result.user_id,
        live_page_link=result.live_page_link,
        repository_link=result.repository_link,
        difficulty=result.difficulty,
        comments=result.comments,
        created_at=result.created_at,
    )


# ---------------------------------------------------------------------------
# Directions and streams
# ---------------------------------------------------------------------------


@router.get("/directions", response_model=list[DirectionResponse])
def list_directions(request: Request) -> list[DirectionResponse]:
    store: InternshipStore = request.app.state.internship
    return [DirectionResponse(id=d.id, direction=d.direction) for d in store.list_directions()]


@router.post("/directions", response_model=DirectionResponse, status_code=201)
def add_direction(
    request: Request,
    body: DirectionCreate,
    current_user: User = Depends(require_roles(ERole.ADMIN)),
) -> DirectionResponse:
    store: InternshipStore = request.app.state.internship
    try:
        direction_id = store.add_direction(body.direction)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "Direction already exists."},
        ) from exc
    return DirectionResponse(id=direction_id, direction=body.direction)


@router.get("/streams", response_model=list[StreamResponse])
def list_streams(request: Request, active_only: bool = False) -> list[StreamResponse]:
    store: InternshipStore = request.app.state.internship
    return [
        StreamResponse(
            id=s.id,
            stream_direction=s.stream_direction,
            is_active=s.is_active,
            start_date=s.start_date,
        )
        for s in store.list_streams(active_only=active_only)
    ]


# ---------------------------------------------------------------------------
# Technical tests
# ---------------------------------------------------------------------------


@router.post("/technical-tests", response_model=TechnicalTestResponse, status_code=201)
def submit_technical_test(
    request: Request,
    body: TechnicalTestSubmit,
    current_user: User = Depends(require_verified),
) -> TechnicalTestResponse:
    """Submit (or resubmit) the caller's technical task.

    A resubmission replaces the previous links and resets the review outcome.
    """
    store: InternshipStore = request.app.state.internship
    user_store: UserStore = request.app.state.user_store

    result = TechnicalTestResult(
        user_id=current_user.id,
        live_page_link=body.live_page_link,
        repository_link=body.repository_link,
        difficulty=body.difficulty,
        comments=body.comments,
    )
    store.save_test_result(result)
    user_store.update_user(current_user.id, is_sent_technical_task=True, is_passed_technical_task=False)
    return _to_response(store.get_test_result(current_user.id))


@router.get("/technical-tests/me", response_model=TechnicalTestResponse)
def get_own_technical_test(
    request: Request,
    current_user: User = Depends(require_verified),
) -> TechnicalTestResponse:
    store: InternshipStore = request.app.state.internship
    result = store.get_test_result(current_user.id)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "No technical task submitted."},
        )
    return _to_response(result)


@router.patch("/technical-tests/{user_id}/review", response_model=TechnicalTestResponse)
def review_technical_test(
    request: Request,
    user_id: int,
    body: TechnicalTestReview,
    current_user: User = Depends(require_roles(ERole.ADMIN, ERole.MENTOR)),
) -> TechnicalTestResponse:
    store: InternshipStore = request.app.state.internship
    user_store: UserStore = request.app.state.user_store

    result = store.get_test_result(user_id)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "No technical task submitted for this user."},
        )
    user_store.update_user(user_id, is_passed_technical_task=body.is_passed)
    return _to_response(result)
