from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from inventory_api.database import Base
from inventory_api.models.lifecycle import RecordStatus


class Category(Base):
    """
    Product category.

    Attributes:
        id: Unique identifier for the category
        name: Display name
        description: Optional free-text description
        status: Lifecycle state (active or retired)
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="category")

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', status='{self.status}')>"
