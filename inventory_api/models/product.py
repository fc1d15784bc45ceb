from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, Enum, ForeignKey, CheckConstraint, update
)
from sqlalchemy.orm import relationship, object_session
from sqlalchemy.sql import func

from inventory_api.database import Base
from inventory_api.exceptions import InsufficientStockError
from inventory_api.models.lifecycle import RecordStatus


class Product(Base):
    """
    Product model representing items available for sale.

    Attributes:
        id: Unique identifier for the product
        batch_number: Unique batch code
        name: Product name
        price: Unit price with two decimals (must be positive)
        available_quantity: Units in stock (must be non-negative)
        entry_date: Date the batch entered the warehouse
        category_id: Optional reference to a category
        status: Lifecycle state (active or retired)
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    batch_number = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    available_quantity = Column(Integer, nullable=False, default=0)
    entry_date = Column(Date, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    status = Column(Enum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="[ProductImage.is_main_image.desc(), ProductImage.created_at.desc(), ProductImage.id.desc()]",
    )

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price > 0', name='check_price_positive'),
        CheckConstraint('available_quantity >= 0', name='check_available_quantity_non_negative'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    def has_stock(self, quantity: int) -> bool:
        """True iff at least ``quantity`` units are available."""
        return self.available_quantity >= quantity

    def reduce_stock(self, quantity: int) -> "Product":
        """
        Decrement available stock inside the caller's transaction.

        The decrement is a conditional ``UPDATE ... WHERE available_quantity
        >= quantity`` so the check and the write happen in one statement,
        against the committed row rather than the value loaded into this
        instance. Rolling back the enclosing transaction restores the
        previous quantity.

        Raises:
            InsufficientStockError: If fewer than ``quantity`` units are available
        """
        session = object_session(self)
        if session is None:
            if not self.has_stock(quantity):
                raise InsufficientStockError(
                    f"Insufficient stock for '{self.name}'. Available: {self.available_quantity}"
                )
            self.available_quantity -= quantity
            return self

        session.flush()
        result = session.execute(
            update(Product)
            .where(Product.id == self.id, Product.available_quantity >= quantity)
            .values(available_quantity=Product.available_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        session.refresh(self, attribute_names=["available_quantity"])

        if result.rowcount == 0:
            raise InsufficientStockError(
                f"Insufficient stock for '{self.name}'. Available: {self.available_quantity}"
            )
        return self

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', available_quantity={self.available_quantity})>"
