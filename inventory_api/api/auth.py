from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from inventory_api.api.deps import get_current_user
from inventory_api.database import get_db
from inventory_api.exceptions import DuplicateRecordError
from inventory_api.models.user import User
from inventory_api.services.auth_service import AuthService
from inventory_api.schemas.user import UserCreate, UserLogin, UserResponse, TokenResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
    description="Create an account and receive an access token."
)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    - **name**: Display name (required)
    - **email**: Unique email (required)
    - **password**: At least 6 characters (required)
    - **role**: admin or client, default client
    """
    service = AuthService(db)

    try:
        user, token = service.register(user_data)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    description="Exchange email and password for an access token."
)
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """Log in with email and password."""
    service = AuthService(db)
    result = service.authenticate(credentials.email, credentials.password)

    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    user, token = result
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user profile"
)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile."""
    return current_user
