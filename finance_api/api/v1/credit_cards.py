"""Credit card CRUD routes"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import ApiResponse, CreditCardCreate, CreditCardOut, credit_card_out
from finance_api.api.dependencies import get_current_user_id, parse_id
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import CreditCardRepository
from finance_api.utils.money import to_cents

router = APIRouter()


def _card_fields(body: CreditCardCreate) -> dict:
    return {
        "name": body.name,
        "last_four_digits": body.last_four_digits,
        "brand": body.brand,
        "limit_cents": to_cents(body.limit),
        "closing_day": body.closing_day,
        "due_day": body.due_day,
        "color": body.color,
        "is_active": body.is_active,
    }


@router.get("/credit-cards", response_model=ApiResponse[List[CreditCardOut]])
def list_credit_cards(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    cards = CreditCardRepository(db).list_for_user(user_id, active=active)
    return ApiResponse(message="Credit cards found", data=[credit_card_out(c) for c in cards])


@router.get("/credit-cards/{card_id}", response_model=ApiResponse[CreditCardOut])
def get_credit_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    card = CreditCardRepository(db).get(user_id, parse_id(card_id))
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")
    return ApiResponse(message="Credit card found", data=credit_card_out(card))


@router.post("/credit-cards", status_code=201, response_model=ApiResponse[CreditCardOut])
def create_credit_card(
    body: CreditCardCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    card = CreditCardRepository(db).create(user_id, **_card_fields(body))
    db.commit()
    return ApiResponse(message="Credit card created", data=credit_card_out(card))


@router.put("/credit-cards/{card_id}", response_model=ApiResponse[CreditCardOut])
def update_credit_card(
    card_id: str,
    body: CreditCardCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    card = CreditCardRepository(db).get(user_id, parse_id(card_id))
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")

    for field, value in _card_fields(body).items():
        setattr(card, field, value)
    db.commit()

    return ApiResponse(message="Credit card updated", data=credit_card_out(card))


@router.delete("/credit-cards/{card_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_credit_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a card; bills and transactions keep their (now stale) reference"""
    repo = CreditCardRepository(db)
    card = repo.get(user_id, parse_id(card_id))
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")

    repo.delete(card)
    db.commit()

    return ApiResponse(message="Credit card deleted")


@router.patch("/credit-cards/{card_id}/toggle", response_model=ApiResponse[CreditCardOut])
def toggle_credit_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    card = CreditCardRepository(db).get(user_id, parse_id(card_id))
    if not card:
        raise HTTPException(status_code=404, detail="Credit card not found")

    card.is_active = not card.is_active
    db.commit()

    state = "activated" if card.is_active else "deactivated"
    return ApiResponse(message=f"Credit card {state}", data=credit_card_out(card))
