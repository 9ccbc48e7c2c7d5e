"""Answer endpoints."""

from __future__ import annotations

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from teamquiz.answers.schemas import AnswerResponse, AnswerSubmitRequest, AnswerSubmitResponse
from teamquiz.answers.service import list_user_answers, submit_answer
from teamquiz.auth.dependencies import get_current_user
from teamquiz.database import get_session
from teamquiz.db.models import User
from teamquiz.dependencies import get_now
from teamquiz.errors import NotFoundError, PersistenceError
from teamquiz.gamification.schemas import AchievementResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/answers", tags=["Answers"])


@router.post("", response_model=AnswerSubmitResponse)
async def submit(
    body: AnswerSubmitRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> AnswerSubmitResponse:
    """Grade and record one answer; reports quiz completion and new achievements."""
    user_id = user.id
    try:
        result = await submit_answer(
            db,
            user_id,
            body.question_id,
            body.answer,
            now,
            client_correct=body.correct,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Question not found") from e
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail="Failed to submit answer") from e

    logger.info(
        "answer_recorded",
        user_id=user_id,
        question_id=body.question_id,
        correct=result.answer.correct,
        quiz_completed=result.quiz_completed,
    )
    return AnswerSubmitResponse(
        answer=AnswerResponse.model_validate(result.answer),
        achievements=[AchievementResponse.model_validate(a) for a in result.achievements],
        quiz_completed=result.quiz_completed,
    )


@router.get("", response_model=list[AnswerResponse])
async def my_answers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[AnswerResponse]:
    """The caller's own answer history."""
    return [AnswerResponse.model_validate(a) for a in await list_user_answers(db, user.id)]
