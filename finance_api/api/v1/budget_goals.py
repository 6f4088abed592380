"""Budget goals routes - one goals document per user"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import ApiResponse, BudgetGoalsOut, BudgetGoalsSave, budget_goals_out
from finance_api.api.dependencies import get_current_user_id
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import BudgetGoalsRepository

router = APIRouter()


@router.get("/budget-goals", response_model=ApiResponse[BudgetGoalsOut])
def get_budget_goals(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    goals = BudgetGoalsRepository(db).get_for_user(user_id)
    if not goals:
        raise HTTPException(status_code=404, detail="Budget goals not found")
    return ApiResponse(message="Budget goals found", data=budget_goals_out(goals))


@router.post("/budget-goals", status_code=201, response_model=ApiResponse[BudgetGoalsOut])
def save_budget_goals(
    body: BudgetGoalsSave,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create the caller's goals, or replace them when already stored"""
    goals, created = BudgetGoalsRepository(db).upsert(
        user_id,
        body.goals.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
    db.commit()

    logging.info("Budget goals saved", extra={"user_id": user_id, "created": created})

    return ApiResponse(
        message="Budget goals created" if created else "Budget goals updated",
        data=budget_goals_out(goals),
    )


@router.delete("/budget-goals", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_budget_goals(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    repo = BudgetGoalsRepository(db)
    goals = repo.get_for_user(user_id)
    if not goals:
        raise HTTPException(status_code=404, detail="Budget goals not found")

    repo.delete(goals)
    db.commit()

    return ApiResponse(message="Budget goals deleted")
