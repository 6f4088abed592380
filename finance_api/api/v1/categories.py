"""Category CRUD routes"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finance_api.api.v1.schemas import ApiResponse, CategoryCreate, CategoryOut, category_out
from finance_api.api.dependencies import get_current_user_id, parse_id
from finance_api.infrastructure.database.session import get_db
from finance_api.infrastructure.database.repositories import CategoryRepository
from finance_api.domain.exceptions import DuplicateCategoryError
from finance_api.domain.models import TRANSACTION_TYPES

router = APIRouter()


def _ensure_unique_name(repo: CategoryRepository, user_id: str, body: CategoryCreate, exclude_id=None) -> None:
    """
    Raises:
        DuplicateCategoryError: another category of the user has this name, ignoring case
    """
    if repo.find_by_name(user_id, body.name, exclude_id=exclude_id):
        raise DuplicateCategoryError("A category with this name already exists")


@router.get("/categories", response_model=ApiResponse[List[CategoryOut]])
def list_categories(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    categories = CategoryRepository(db).list_for_user(user_id)
    return ApiResponse(message="Categories found", data=[category_out(c) for c in categories])


@router.get("/categories/type/{category_type}", response_model=ApiResponse[List[CategoryOut]])
def list_categories_by_type(
    category_type: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if category_type not in TRANSACTION_TYPES:
        raise HTTPException(status_code=400, detail="Invalid type")

    categories = CategoryRepository(db).list_for_user(user_id, type=category_type)
    return ApiResponse(message="Categories found", data=[category_out(c) for c in categories])


@router.post("/categories", status_code=201, response_model=ApiResponse[CategoryOut])
def create_category(
    body: CategoryCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = CategoryRepository(db)
    try:
        _ensure_unique_name(repo, user_id, body)
    except DuplicateCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    category = repo.create(user_id, name=body.name, type=body.type, color=body.color)
    db.commit()

    return ApiResponse(message="Category created", data=category_out(category))


@router.put("/categories/{category_id}", response_model=ApiResponse[CategoryOut])
def update_category(
    category_id: str,
    body: CategoryCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = CategoryRepository(db)
    category = repo.get(user_id, parse_id(category_id))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    try:
        _ensure_unique_name(repo, user_id, body, exclude_id=category.id)
    except DuplicateCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    category.name = body.name
    category.type = body.type
    category.color = body.color
    db.commit()

    return ApiResponse(message="Category updated", data=category_out(category))


@router.delete("/categories/{category_id}", response_model=ApiResponse[None], response_model_exclude_none=True)
def delete_category(
    category_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = CategoryRepository(db)
    category = repo.get(user_id, parse_id(category_id))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    repo.delete(category)
    db.commit()

    return ApiResponse(message="Category deleted")
