"""Question endpoints: weekly set for players, lifecycle management for admins.

Every listing runs the archival sweep first.
"""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.admin.cache import CacheSettings, apply_cache_headers, get_cache_settings
from teamquiz.auth.dependencies import get_current_admin, get_current_user
from teamquiz.config import get_settings
from teamquiz.database import get_session
from teamquiz.db.models import Question, User
from teamquiz.dependencies import get_now
from teamquiz.errors import NotFoundError, ValidationError
from teamquiz.questions import service
from teamquiz.questions.archival import sweep_past_weeks
from teamquiz.questions.schemas import (
    QuestionCreateRequest,
    QuestionResponse,
    QuestionUpdateRequest,
    WeekEntry,
)
from teamquiz.week_utils import get_monday

router = APIRouter(prefix="/api/questions", tags=["Questions"])


def _response(q: Question) -> QuestionResponse:
    return QuestionResponse.model_validate(q)


async def _swept(db: AsyncSession, now: datetime) -> None:
    if await sweep_past_weeks(db, now):
        await db.commit()


@router.get("/weekly", response_model=list[QuestionResponse])
async def weekly_questions(
    response: Response,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
    cache: CacheSettings = Depends(get_cache_settings),
) -> list[QuestionResponse]:
    """This week's active questions."""
    await _swept(db, now)
    apply_cache_headers(response, cache)
    return [_response(q) for q in await service.list_current_week(db, now)]


@router.get("", response_model=list[QuestionResponse])
async def active_questions(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[QuestionResponse]:
    """All active questions, current and future weeks."""
    await _swept(db, now)
    return [_response(q) for q in await service.list_active(db)]


@router.get("/archived", response_model=list[QuestionResponse])
async def archived_questions(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[QuestionResponse]:
    await _swept(db, now)
    return [_response(q) for q in await service.list_archived(db)]


@router.get("/weeks", response_model=list[WeekEntry])
async def schedulable_weeks(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[WeekEntry]:
    """Current and upcoming weeks with their active question counts."""
    await _swept(db, now)
    current = get_monday(now, get_settings().timezone)
    return [
        WeekEntry(week_of=week, question_count=count, is_current=week == current)
        for week, count in await service.list_weeks(db, now)
    ]


@router.get("/weeks/{week_of}", response_model=list[QuestionResponse])
async def questions_for_week(
    week_of: date,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> list[QuestionResponse]:
    await _swept(db, now)
    return [_response(q) for q in await service.list_by_week(db, week_of)]


@router.post("", response_model=QuestionResponse, status_code=201)
async def create_question(
    body: QuestionCreateRequest,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> QuestionResponse:
    try:
        q = await service.create_question(
            db,
            question=body.question,
            options=body.options,
            correct_answer=body.correct_answer,
            category=body.category,
            explanation=body.explanation,
            week_of=body.week_of or now,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _response(q)


@router.patch("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: int,
    body: QuestionUpdateRequest,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> QuestionResponse:
    """Partial update; the result must still have its correct answer among its options."""
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    try:
        q = await service.update_question(db, question_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _response(q)


@router.delete("/{question_id}", status_code=204)
async def delete_question(
    question_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    try:
        await service.delete_question(db, question_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return Response(status_code=204)


@router.post("/{question_id}/archive", response_model=QuestionResponse)
async def archive_question(
    question_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> QuestionResponse:
    try:
        q = await service.archive_question(db, question_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return _response(q)


@router.post("/{question_id}/unarchive", response_model=QuestionResponse)
async def unarchive_question(
    question_id: int,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> QuestionResponse:
    """Bring a question back into circulation. Its week is not changed."""
    try:
        q = await service.unarchive_question(db, question_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return _response(q)
