from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple
import logging

from inventory_api.database import transaction
from inventory_api.exceptions import DuplicateRecordError
from inventory_api.models.user import User
from inventory_api.schemas.user import UserCreate
from inventory_api.utils.security import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Service class for account registration and login."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, user_data: UserCreate) -> Tuple[User, str]:
        """
        Create a user account and issue an access token for it.

        Raises:
            DuplicateRecordError: If the email is already registered
        """
        email = user_data.email.lower()
        if self.db.query(User.id).filter(User.email == email).first():
            raise DuplicateRecordError(f"Email {email} is already registered")

        try:
            with transaction(self.db):
                user = User(
                    name=user_data.name,
                    email=email,
                    password_hash=get_password_hash(user_data.password),
                    role=user_data.role,
                )
                self.db.add(user)
        except IntegrityError as e:
            raise DuplicateRecordError(f"Email {email} is already registered") from e

        self.db.refresh(user)
        logger.info(f"User registered: {user.email}")
        return user, create_access_token(user.id)

    def authenticate(self, email: str, password: str) -> Optional[Tuple[User, str]]:
        """Return the user and a fresh token, or None if the credentials are invalid."""
        user = self.db.query(User).filter(User.email == email.lower()).first()

        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None

        logger.info(f"Successful login: {user.email}")
        return user, create_access_token(user.id)

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()
