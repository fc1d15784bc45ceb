from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from inventory_api.api.deps import require_admin
from inventory_api.database import get_db
from inventory_api.services.category_service import CategoryService
from inventory_api.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get(
    "/",
    response_model=List[CategoryResponse],
    summary="List active categories"
)
def list_categories(db: Session = Depends(get_db)):
    """Get all active categories, newest first."""
    return CategoryService(db).get_all()


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Get category by ID"
)
def get_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """Get a category by ID."""
    category = CategoryService(db).get_by_id(category_id)

    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category with ID {category_id} not found"
        )

    return category


@router.post(
    "/",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
    dependencies=[Depends(require_admin)]
)
def create_category(
    category_data: CategoryCreate,
    db: Session = Depends(get_db)
):
    """Create a new category (admin only)."""
    return CategoryService(db).create(category_data)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update a category",
    dependencies=[Depends(require_admin)]
)
def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    db: Session = Depends(get_db)
):
    """Update a category (admin only). Only provided fields are changed."""
    category = CategoryService(db).update(category_id, category_data)

    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category with ID {category_id} not found"
        )

    return category


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Retire a category",
    dependencies=[Depends(require_admin)]
)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """Retire a category (admin only). The row is kept for history."""
    category = CategoryService(db).retire(category_id)

    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category with ID {category_id} not found"
        )

    return None
