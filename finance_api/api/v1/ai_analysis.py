"""AI analysis routes - storage for month analyses generated by the client"""

import math
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import (
    AIAnalysisOut,
    AIAnalysisPage,
    AIAnalysisSave,
    ApiResponse,
    Pagination,
    ai_analysis_out,
)
from finance_api.api.dependencies import get_current_user_id
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import AIAnalysisRepository
from finance_api.domain.exceptions import InvalidPeriodFormatError
from finance_api.domain.periods import parse_period

router = APIRouter()


def _validate_month(month: str) -> None:
    try:
        parse_period(month)
    except InvalidPeriodFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/ai-analysis", response_model=ApiResponse[AIAnalysisPage])
def list_analyses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Stored analyses of the caller, most recent month first"""
    items, total = AIAnalysisRepository(db).list_for_user(user_id, offset=(page - 1) * limit, limit=limit)

    return ApiResponse(
        message="Analyses found",
        data=AIAnalysisPage(
            analyses=[ai_analysis_out(a) for a in items],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        ),
    )


@router.get("/ai-analysis/{month}", response_model=ApiResponse[AIAnalysisOut])
def get_analysis(
    month: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _validate_month(month)
    analysis = AIAnalysisRepository(db).get_for_month(user_id, month)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found for this month")
    return ApiResponse(message="Analysis found", data=ai_analysis_out(analysis))


@router.post("/ai-analysis", status_code=201, response_model=ApiResponse[AIAnalysisOut])
def save_analysis(
    body: AIAnalysisSave,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Store the analysis of a month.

    A second POST for the same month replaces the stored analysis.
    """
    _validate_month(body.month)

    analysis, created = AIAnalysisRepository(db).upsert(
        user_id,
        body.month,
        body.analysis.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
    db.commit()

    logging.info(
        "AI analysis saved",
        extra={"user_id": user_id, "month": body.month, "created": created},
    )

    return ApiResponse(
        message="Analysis created" if created else "Analysis updated",
        data=ai_analysis_out(analysis),
    )


@router.delete("/ai-analysis/{month}", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_analysis(
    month: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _validate_month(month)
    repo = AIAnalysisRepository(db)
    analysis = repo.get_for_month(user_id, month)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")

    repo.delete(analysis)
    db.commit()

    return ApiResponse(message="Analysis deleted")
