from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from inventory_api.database import transaction
from inventory_api.exceptions import CategoryInactiveError
from inventory_api.models.category import Category
from inventory_api.models.lifecycle import RecordStatus
from inventory_api.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Service class for Category CRUD operations. Deletion retires the row."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Category]:
        """Get all active categories, newest first."""
        return (
            self.db.query(Category)
            .filter(Category.status == RecordStatus.ACTIVE)
            .order_by(Category.created_at.desc(), Category.id.desc())
            .all()
        )

    def get_by_id(self, category_id: int) -> Optional[Category]:
        return self.db.query(Category).filter(Category.id == category_id).first()

    def require_active(self, category_id: int) -> Category:
        """
        Return the category if it exists and is active.

        Raises:
            CategoryInactiveError: If the category is missing or retired
        """
        category = self.get_by_id(category_id)
        if not category or not category.is_active:
            raise CategoryInactiveError(category_id)
        return category

    def create(self, category_data: CategoryCreate) -> Category:
        with transaction(self.db):
            category = Category(
                name=category_data.name,
                description=category_data.description,
            )
            self.db.add(category)
        self.db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    def update(self, category_id: int, category_data: CategoryUpdate) -> Optional[Category]:
        category = self.get_by_id(category_id)
        if not category:
            return None

        with transaction(self.db):
            for field, value in category_data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(category, field, value)
        self.db.refresh(category)
        logger.info(f"Category updated: {category.name}")
        return category

    def retire(self, category_id: int) -> Optional[Category]:
        """Soft delete a category. Products keep their reference to it."""
        category = self.get_by_id(category_id)
        if not category:
            return None

        with transaction(self.db):
            category.status = RecordStatus.RETIRED
        logger.info(f"Category retired: {category.name}")
        return category
