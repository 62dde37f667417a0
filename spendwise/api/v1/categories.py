"""/v1/categories - default and user-defined expense categories"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_request_id
from spendwise.api.v1.common import parse_uuid
from spendwise.api.v1.schemas import CategoryCreate, CategoryResponse, CategoryUpdate
from spendwise.domain.exceptions import InvariantViolationError, NotFoundError
from spendwise.infrastructure.database.models import Category
from spendwise.infrastructure.database.repositories import CategoryRepository
from spendwise.infrastructure.database.session import get_db

router = APIRouter()


def _category_response(category: Category) -> CategoryResponse:
    return CategoryResponse(
        id=str(category.id),
        name=category.name,
        icon=category.icon,
        color=category.color,
        is_default=category.is_default,
        user_id=category.user_id,
    )


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    user_id: Optional[str] = Query(None, description="Include this user's own categories"),
    db: Session = Depends(get_db),
):
    """Default categories followed by the user's custom ones"""
    return [_category_response(c) for c in CategoryRepository(db).list_for_user(user_id)]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(body: CategoryCreate, db: Session = Depends(get_db)):
    category = CategoryRepository(db).create_category(body.user_id, body.name, body.icon, body.color)
    db.commit()
    return _category_response(category)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: str, body: CategoryUpdate, request: Request, db: Session = Depends(get_db)):
    """Rename or restyle a user category. Default categories are immutable."""
    category_uuid = parse_uuid(category_id, "category ID")
    request_id = get_request_id(request)
    repo = CategoryRepository(db)

    try:
        category = repo.require_owned(category_uuid, body.user_id)
        updates = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"user_id"})
        repo.update_category(category, updates)
        db.commit()
        return _category_response(category)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvariantViolationError as e:
        db.rollback()
        logging.warning(f"Rejected category update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(
    category_id: str,
    request: Request,
    user_id: str = Query(..., description="Owner of the category"),
    db: Session = Depends(get_db),
):
    category_uuid = parse_uuid(category_id, "category ID")
    request_id = get_request_id(request)
    repo = CategoryRepository(db)

    try:
        moved = repo.delete_category(repo.require_owned(category_uuid, user_id))
        db.commit()
        logging.info(
            "Category deleted",
            extra={"request_id": request_id, "category_id": category_id, "expenses_reassigned": moved},
        )
        return Response(status_code=204)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvariantViolationError as e:
        db.rollback()
        logging.warning(f"Rejected category delete: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))
