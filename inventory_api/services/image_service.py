from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List
import logging

from inventory_api.database import transaction, on_commit
from inventory_api.exceptions import ProductNotFoundError, ImageNotFoundError, PersistenceError
from inventory_api.models.lifecycle import RecordStatus
from inventory_api.models.product import Product
from inventory_api.models.product_image import ProductImage
from inventory_api.schemas.product import ImageData
from inventory_api.tasks.image_tasks import schedule_file_removal
from inventory_api.utils.cache import cache_service

logger = logging.getLogger(__name__)

# Main image first, then newest first. The same order decides which image is
# promoted when the main image is deleted.
IMAGE_ORDER = (
    ProductImage.is_main_image.desc(),
    ProductImage.created_at.desc(),
    ProductImage.id.desc(),
)


class ImageService:
    """
    Service class for product images.

    Keeps the main-image invariant: a product with images has exactly one
    image flagged ``is_main_image``, a product without images has none.
    Every mutation clears and sets flags inside a single transaction, so the
    invariant holds after each call returns. Calls made inside an outer
    ``transaction(db)`` scope join it instead of committing on their own.
    """

    CACHE_PREFIX = "product"

    def __init__(self, db: Session):
        self.db = db

    def add_image(self, product_id: int, image_data: ImageData) -> ProductImage:
        """
        Attach an uploaded image to a product.

        When ``image_data.is_main_image`` is set the previous main image is
        demoted first. The first image of a product always becomes main.

        Raises:
            ProductNotFoundError: If the product doesn't exist or is retired
            PersistenceError: If the image row could not be saved
        """
        try:
            with transaction(self.db):
                self._get_active_product(product_id)

                has_images = (
                    self.db.query(ProductImage.id)
                    .filter(ProductImage.product_id == product_id)
                    .first()
                    is not None
                )
                is_main = image_data.is_main_image or not has_images

                if is_main:
                    self._clear_main_flag(product_id)

                image = ProductImage(
                    product_id=product_id,
                    filename=image_data.filename,
                    original_name=image_data.original_name,
                    mimetype=image_data.mimetype,
                    size=image_data.size,
                    is_main_image=is_main,
                )
                self.db.add(image)
                self.db.flush()
                on_commit(self.db, lambda: cache_service.delete(self.CACHE_PREFIX, str(product_id)))
        except SQLAlchemyError as e:
            logger.error(f"Error adding image to product #{product_id}: {e}")
            raise PersistenceError("Image could not be saved") from e

        logger.info(f"Image {image.filename} added to product #{product_id} (main={is_main})")
        return image

    def set_main_image(self, product_id: int, image_id: int) -> List[ProductImage]:
        """
        Make ``image_id`` the product's only main image.

        Returns:
            The product's images, main first

        Raises:
            ImageNotFoundError: If the image does not belong to the product
        """
        with transaction(self.db):
            image = self._get_image(product_id, image_id)
            self._clear_main_flag(product_id)
            image.is_main_image = True
            self.db.flush()
            on_commit(self.db, lambda: cache_service.delete(self.CACHE_PREFIX, str(product_id)))

        logger.info(f"Image #{image_id} is now the main image of product #{product_id}")
        return self.list_by_product(product_id)

    def delete_image(self, product_id: int, image_id: int) -> bool:
        """
        Delete an image row and schedule removal of its stored file.

        If the deleted image was the main image, the most recently created
        remaining image is promoted. File removal runs after commit and never
        fails the call.

        Raises:
            ImageNotFoundError: If the image does not belong to the product
        """
        with transaction(self.db):
            image = self._get_image(product_id, image_id)
            filename = image.filename
            was_main = image.is_main_image

            self.db.delete(image)
            self.db.flush()

            promoted = None
            if was_main:
                promoted = (
                    self.db.query(ProductImage)
                    .filter(ProductImage.product_id == product_id)
                    .order_by(ProductImage.created_at.desc(), ProductImage.id.desc())
                    .first()
                )
                if promoted:
                    promoted.is_main_image = True
                    self.db.flush()

            on_commit(self.db, lambda: schedule_file_removal(filename))
            on_commit(self.db, lambda: cache_service.delete(self.CACHE_PREFIX, str(product_id)))

        logger.info(f"Image #{image_id} removed from product #{product_id}")
        if promoted:
            logger.info(f"Image #{promoted.id} promoted to main image of product #{product_id}")
        return True

    def list_by_product(self, product_id: int) -> List[ProductImage]:
        """Get all images of a product, main first, then newest first."""
        return (
            self.db.query(ProductImage)
            .filter(ProductImage.product_id == product_id)
            .order_by(*IMAGE_ORDER)
            .all()
        )

    def get_main_image(self, product_id: int):
        return (
            self.db.query(ProductImage)
            .filter(ProductImage.product_id == product_id, ProductImage.is_main_image.is_(True))
            .first()
        )

    def _get_active_product(self, product_id: int) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.status == RecordStatus.ACTIVE)
            .first()
        )
        if not product:
            raise ProductNotFoundError(product_id)
        return product

    def _get_image(self, product_id: int, image_id: int) -> ProductImage:
        image = (
            self.db.query(ProductImage)
            .filter(ProductImage.id == image_id, ProductImage.product_id == product_id)
            .first()
        )
        if not image:
            raise ImageNotFoundError(image_id, product_id)
        return image

    def _clear_main_flag(self, product_id: int) -> None:
        self.db.query(ProductImage).filter(
            ProductImage.product_id == product_id,
            ProductImage.is_main_image.is_(True),
        ).update({ProductImage.is_main_image: False}, synchronize_session="fetch")
