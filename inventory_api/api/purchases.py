from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from inventory_api.api.deps import get_current_user, require_admin, require_client
from inventory_api.database import get_db
from inventory_api.exceptions import (
    ProductNotFoundError,
    InsufficientStockError,
    PersistenceError,
)
from inventory_api.models.purchase import PurchaseStatus
from inventory_api.models.user import User, UserRole
from inventory_api.services.purchase_service import PurchaseService
from inventory_api.schemas.purchase import (
    PurchaseCreate,
    PurchaseResponse,
    PurchaseListResponse,
)

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post(
    "/",
    response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a purchase",
    description="""
    Buy one or more products in a single all-or-nothing transaction.

    **Race Condition Handling:**
    Each product row is locked with SELECT FOR UPDATE before its stock is
    checked and decremented. If any line item references a missing product
    or exceeds the available stock, nothing is written and the request
    fails with 400.
    """
)
def create_purchase(
    purchase_data: PurchaseCreate,
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db)
):
    """
    Create a purchase for the authenticated client.

    - **items**: Non-empty list of `{product_id, quantity}` (quantity > 0)
    """
    service = PurchaseService(db)

    try:
        return service.create_purchase(current_user.id, purchase_data.items)
    except (ProductNotFoundError, InsufficientStockError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get(
    "/mine",
    response_model=PurchaseListResponse,
    summary="List my purchases"
)
def list_my_purchases(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(require_client),
    db: Session = Depends(get_db)
):
    """Get the authenticated client's purchases, newest first."""
    service = PurchaseService(db)
    purchases, total, total_pages = service.get_user_purchases(current_user.id, page, page_size)

    return PurchaseListResponse(
        items=[PurchaseResponse.model_validate(p) for p in purchases],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/",
    response_model=PurchaseListResponse,
    summary="List all purchases",
    description="Get a paginated list of every purchase (admin only).",
    dependencies=[Depends(require_admin)]
)
def list_purchases(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    status: Optional[PurchaseStatus] = Query(None, description="Filter by purchase status"),
    db: Session = Depends(get_db)
):
    """Get paginated list of purchases."""
    service = PurchaseService(db)
    purchases, total, total_pages = service.get_purchases(page, page_size, status)

    return PurchaseListResponse(
        items=[PurchaseResponse.model_validate(p) for p in purchases],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/{purchase_id}",
    response_model=PurchaseResponse,
    summary="Get purchase by ID",
    description="Clients can only see their own purchases; admins can see any."
)
def get_purchase(
    purchase_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a purchase by ID."""
    service = PurchaseService(db)
    owner_id = None if current_user.role == UserRole.ADMIN else current_user.id
    purchase = service.get_purchase(purchase_id, owner_id)

    if not purchase:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Purchase with ID {purchase_id} not found"
        )

    return purchase
