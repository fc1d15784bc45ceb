from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from inventory_api.database import Base
from inventory_api.models.lifecycle import RecordStatus


class UserRole(str, enum.Enum):
    """Enum for user roles."""
    ADMIN = "admin"
    CLIENT = "client"


class User(Base):
    """
    User account.

    Attributes:
        id: Unique identifier for the user
        name: Display name
        email: Login email (unique)
        password_hash: Hashed password, never the plain text
        role: Access role (admin or client)
        status: Lifecycle state (active or retired)
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False)
    status = Column(Enum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    purchases = relationship("Purchase", back_populates="user")

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
