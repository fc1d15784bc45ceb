from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from inventory_api.database import Base


class PurchaseStatus(str, enum.Enum):
    """Enum for purchase status."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Purchase(Base):
    """
    Purchase model representing one all-or-nothing checkout.

    Attributes:
        id: Unique identifier for the purchase
        user_id: Buyer
        total_amount: Sum of the line subtotals
        purchase_date: When the purchase was committed
        status: Current status of the purchase
        details: Line items, created together with the purchase
    """
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    purchase_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(Enum(PurchaseStatus), default=PurchaseStatus.COMPLETED, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="purchases")
    details = relationship(
        "PurchaseDetail",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseDetail.id",
    )

    def __repr__(self):
        return f"<Purchase(id={self.id}, user_id={self.user_id}, total_amount={self.total_amount})>"


class PurchaseDetail(Base):
    """
    Line item of a purchase.

    ``unit_price`` is a snapshot of the product price at purchase time and
    does not follow later price changes.
    """
    __tablename__ = "purchase_details"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    purchase = relationship("Purchase", back_populates="details")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
    )

    def __repr__(self):
        return f"<PurchaseDetail(purchase_id={self.purchase_id}, product_id={self.product_id}, quantity={self.quantity})>"
