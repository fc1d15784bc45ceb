from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional, List, Iterable, Tuple
import math
import logging

from inventory_api.database import transaction, on_commit
from inventory_api.exceptions import DuplicateRecordError, PersistenceError
from inventory_api.models.lifecycle import RecordStatus
from inventory_api.models.product import Product
from inventory_api.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductDetailResponse,
    ImageData,
)
from inventory_api.services.category_service import CategoryService
from inventory_api.services.image_service import ImageService
from inventory_api.utils.cache import cache_service

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for the product catalog.

    This service handles:
    - Creating products together with their images
    - Reading products (paginated, with category and optional images)
    - Updating products, including image additions, removals and main image
    - Retiring products (soft delete)
    - Cache invalidation after committed changes
    """

    CACHE_PREFIX = "product"

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryService(db)
        self.images = ImageService(db)

    def create(self, product_data: ProductCreate, images: Iterable[ImageData] = ()) -> Product:
        """
        Create a product and attach its images in one transaction.

        Args:
            product_data: Product creation data
            images: Metadata of already stored uploads

        Returns:
            Created product with category and images loaded

        Raises:
            CategoryInactiveError: If category_id references a missing or retired category
            DuplicateRecordError: If the batch number is already used
        """
        try:
            with transaction(self.db):
                if product_data.category_id is not None:
                    self.categories.require_active(product_data.category_id)

                product = Product(**product_data.model_dump())
                self.db.add(product)
                self.db.flush()

                for image_data in images:
                    self.images.add_image(product.id, image_data)
        except IntegrityError as e:
            raise DuplicateRecordError(
                f"Batch number {product_data.batch_number} already exists"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating product {product_data.batch_number}: {e}")
            raise PersistenceError("Product could not be saved") from e

        logger.info(f"Product created: {product.name} ({product.batch_number})")
        return self.get_by_id(product.id)

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get an active product with its category and images."""
        return (
            self.db.query(Product)
            .options(joinedload(Product.category), selectinload(Product.images))
            .filter(Product.id == product_id, Product.status == RecordStatus.ACTIVE)
            .first()
        )

    def get_by_id_cached(self, product_id: int) -> Optional[dict]:
        """
        Get product details from cache or database.
        Returns a dictionary (suitable for API response).
        """
        cached = cache_service.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product = self.get_by_id(product_id)
        if not product:
            return None

        product_dict = ProductDetailResponse.model_validate(product).model_dump(mode="json")
        cache_service.set(self.CACHE_PREFIX, str(product_id), product_dict)
        return product_dict

    def get_all(
        self,
        page: int = 1,
        limit: int = 20,
        include_images: bool = False
    ) -> Tuple[List[Product], int, int]:
        """
        Get paginated list of active products, newest first.

        Args:
            page: Page number (1-indexed)
            limit: Number of items per page
            include_images: Eager-load images as well as the category

        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self.db.query(Product).filter(Product.status == RecordStatus.ACTIVE)

        total = query.count()
        total_pages = math.ceil(total / limit) if total > 0 else 0

        options = [joinedload(Product.category)]
        if include_images:
            options.append(selectinload(Product.images))

        offset = (page - 1) * limit
        products = (
            query.options(*options)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        return products, total, total_pages

    def update(
        self,
        product_id: int,
        product_data: Optional[ProductUpdate] = None,
        new_images: Iterable[ImageData] = (),
        delete_image_ids: Iterable[int] = (),
        main_image_id: Optional[int] = None,
    ) -> Optional[Product]:
        """
        Update an existing product and its images in one transaction.

        Fields are applied first, then new images are attached, then listed
        images are deleted, and finally ``main_image_id`` becomes the main
        image. Any failure rolls back every step.

        Returns:
            Updated product or None if not found

        Raises:
            CategoryInactiveError: If the new category is missing or retired
            ImageNotFoundError: If an image to delete or promote isn't the product's
            DuplicateRecordError: If the new batch number is already used
        """
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.status == RecordStatus.ACTIVE)
            .first()
        )
        if not product:
            return None

        try:
            with transaction(self.db):
                if product_data is not None:
                    update_data = product_data.model_dump(exclude_unset=True)
                    if update_data.get("category_id") is not None:
                        self.categories.require_active(update_data["category_id"])

                    for field, value in update_data.items():
                        if value is not None:
                            setattr(product, field, value)
                    self.db.flush()

                for image_data in new_images:
                    self.images.add_image(product_id, image_data)

                for image_id in sorted(set(delete_image_ids)):
                    self.images.delete_image(product_id, image_id)

                if main_image_id is not None:
                    self.images.set_main_image(product_id, main_image_id)

                on_commit(self.db, lambda: self._invalidate_cache(product_id))
        except IntegrityError as e:
            raise DuplicateRecordError("Batch number already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating product #{product_id}: {e}")
            raise PersistenceError("Product could not be saved") from e

        logger.info(f"Product updated: {product.name} (ID: {product_id})")
        return self.get_by_id(product_id)

    def retire(self, product_id: int) -> Optional[Product]:
        """
        Soft delete a product. Purchase history keeps referencing it.

        Returns:
            Retired product or None if not found

        Raises:
            PersistenceError: If the change could not be committed
        """
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.status == RecordStatus.ACTIVE)
            .first()
        )
        if not product:
            return None

        try:
            with transaction(self.db):
                product.status = RecordStatus.RETIRED
                on_commit(self.db, lambda: self._invalidate_cache(product_id))
        except SQLAlchemyError as e:
            logger.error(f"Error retiring product #{product_id}: {e}")
            raise PersistenceError("Product could not be saved") from e

        logger.info(f"Product retired: {product.name}")
        return product

    def _invalidate_cache(self, product_id: int) -> None:
        """Invalidate cache for a product."""
        cache_service.delete(self.CACHE_PREFIX, str(product_id))
