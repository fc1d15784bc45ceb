from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, Form, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from inventory_api.api.deps import require_admin
from inventory_api.config import get_settings
from inventory_api.database import get_db
from inventory_api.exceptions import (
    CategoryInactiveError,
    DuplicateRecordError,
    ImageNotFoundError,
    PersistenceError,
    ProductNotFoundError,
)
from inventory_api.services.image_service import ImageService
from inventory_api.services.product_service import ProductService
from inventory_api.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductImageResponse,
    ImageData,
    parse_image_ids,
)
from inventory_api.utils.storage import UploadRejectedError, discard_files, save_image_upload

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/products", tags=["Products"])


def _store_uploads(files: List[UploadFile], main_image_index: Optional[int] = None) -> List[ImageData]:
    """Write uploads to disk; on rejection remove what was already written and answer 400."""
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.MAX_UPLOAD_FILES} images per request"
        )
    if main_image_index is not None and not 0 <= main_image_index < len(files):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid main image index"
        )

    stored = []
    try:
        for idx, upload in enumerate(files):
            stored.append(save_image_upload(upload, is_main_image=idx == main_image_index))
    except UploadRejectedError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return stored


def _validate_form(schema, **fields):
    """Validate multipart form fields with a pydantic schema, answering 422 like JSON bodies."""
    try:
        return schema.model_validate({k: v for k, v in fields.items() if v not in (None, "")})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


@router.post(
    "/",
    response_model=ProductDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a product with at least one image (multipart form).",
    dependencies=[Depends(require_admin)]
)
def create_product(
    batch_number: str = Form(...),
    name: str = Form(...),
    price: str = Form(...),
    available_quantity: str = Form(...),
    entry_date: str = Form(...),
    category_id: Optional[str] = Form(None),
    main_image_index: int = Form(0),
    images: List[UploadFile] = File(..., description="Product images (JPEG, PNG, GIF, WEBP)"),
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **batch_number**: Unique batch code (required)
    - **price**: Unit price, must be positive (required)
    - **available_quantity**: Initial stock, must be non-negative (required)
    - **images**: One to five images; **main_image_index** picks the main one
    """
    product_data = _validate_form(
        ProductCreate,
        batch_number=batch_number,
        name=name,
        price=price,
        available_quantity=available_quantity,
        entry_date=entry_date,
        category_id=category_id,
    )
    stored = _store_uploads(images, main_image_index)

    service = ProductService(db)
    try:
        return service.create(product_data, stored)
    except CategoryInactiveError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateRecordError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List all products",
    description="Get a paginated list of active products, newest first."
)
def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    include_images: bool = Query(False, description="Include product images"),
    db: Session = Depends(get_db)
):
    """Get paginated list of products."""
    service = ProductService(db)
    products, total, total_pages = service.get_all(page, limit, include_images)

    item_schema = ProductDetailResponse if include_images else ProductResponse
    return ProductListResponse(
        items=[item_schema.model_validate(p) for p in products],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages
    )


@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    summary="Get product by ID",
    description="Get a product with its category and images (main image first)."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get a product by ID."""
    service = ProductService(db)
    product = service.get_by_id(product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product


@router.get(
    "/{product_id}/cached",
    summary="Get product from cache",
    description="Get product details from Redis cache (or database if not cached)."
)
def get_product_cached(
    product_id: int,
    db: Session = Depends(get_db)
):
    """
    Get product from cache.

    Returns cached data if available, otherwise fetches from database
    and caches the result. Entries are dropped whenever the product changes.
    """
    service = ProductService(db)
    product_data = service.get_by_id_cached(product_id)

    if not product_data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product_data


@router.put(
    "/{product_id}",
    response_model=ProductDetailResponse,
    summary="Update a product",
    description="Update fields and images in one transaction (multipart form).",
    dependencies=[Depends(require_admin)]
)
def update_product(
    product_id: int,
    batch_number: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    available_quantity: Optional[str] = Form(None),
    entry_date: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    delete_images: Optional[str] = Form(None, description="Image ids as JSON array or comma separated"),
    main_image_id: Optional[int] = Form(None),
    main_image_index: Optional[int] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db)
):
    """
    Update a product.

    Partial updates are supported - only include fields you want to change.
    New **images** are attached, **delete_images** are removed, and
    **main_image_id** (an existing image) becomes the main image.
    """
    product_data = _validate_form(
        ProductUpdate,
        batch_number=batch_number,
        name=name,
        price=price,
        available_quantity=available_quantity,
        entry_date=entry_date,
        category_id=category_id,
    )
    stored = _store_uploads(images or [], main_image_index)

    service = ProductService(db)
    try:
        product = service.update(
            product_id,
            product_data,
            new_images=stored,
            delete_image_ids=parse_image_ids(delete_images),
            main_image_id=main_image_id,
        )
    except CategoryInactiveError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ImageNotFoundError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateRecordError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        discard_files(image.filename for image in stored)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if not product:
        discard_files(image.filename for image in stored)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Retire a product",
    description="Soft delete a product. Purchase history keeps referencing it.",
    dependencies=[Depends(require_admin)]
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Retire a product."""
    service = ProductService(db)
    try:
        product = service.retire(product_id)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return None


@router.get(
    "/{product_id}/images",
    response_model=List[ProductImageResponse],
    summary="List product images",
    description="Images of a product, main image first, then newest first."
)
def list_product_images(
    product_id: int,
    db: Session = Depends(get_db)
):
    """List a product's images."""
    if not ProductService(db).get_by_id(product_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return ImageService(db).list_by_product(product_id)


@router.post(
    "/{product_id}/images",
    response_model=ProductImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a product image",
    dependencies=[Depends(require_admin)]
)
def add_product_image(
    product_id: int,
    image: UploadFile = File(...),
    is_main_image: bool = Form(False),
    db: Session = Depends(get_db)
):
    """
    Upload one image for a product.

    With **is_main_image** the new image replaces the current main image.
    The first image of a product always becomes the main image.
    """
    (image_data,) = _store_uploads([image], 0 if is_main_image else None)

    service = ImageService(db)
    try:
        return service.add_image(product_id, image_data)
    except ProductNotFoundError as e:
        discard_files([image_data.filename])
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PersistenceError as e:
        discard_files([image_data.filename])
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.put(
    "/{product_id}/images/{image_id}/main",
    response_model=List[ProductImageResponse],
    summary="Set the main image",
    dependencies=[Depends(require_admin)]
)
def set_main_product_image(
    product_id: int,
    image_id: int,
    db: Session = Depends(get_db)
):
    """Make an existing image the product's main image."""
    service = ImageService(db)
    try:
        return service.set_main_image(product_id, image_id)
    except ImageNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/{product_id}/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product image",
    dependencies=[Depends(require_admin)]
)
def delete_product_image(
    product_id: int,
    image_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete an image and its stored file.

    If it was the main image, the most recent remaining image becomes main.
    """
    service = ImageService(db)
    try:
        service.delete_image(product_id, image_id)
    except ImageNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return None
