# taskhub/routers/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskhub.config.settings import Settings
from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.schemas.tokens import Token
from taskhub.schemas.user import PasswordChange, ProfileUpdate, UserCreate, UserLogin, UserOut
from taskhub.utils.auth import get_app_settings, get_current_user
from taskhub.utils.errors import AuthError, DuplicateValue, ValidationError
from taskhub.utils.responses import envelope
from taskhub.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_payload(user: User, settings: Settings) -> dict:
    token = create_access_token(user.id, settings)
    return Token(user=UserOut.model_validate(user), token=token).to_json()


def email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    user: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user and log them in"""
    if email_taken(db, user.email):
        raise DuplicateValue("User with this email already exists", code="EMAIL_EXISTS")

    new_user = User(
        name=user.name,
        email=user.email,
        hashed_password=hash_password(user.password, settings.bcrypt_rounds),
        department=user.department,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Another signup claimed the email between the check and the insert
        db.rollback()
        raise DuplicateValue("User with this email already exists", code="EMAIL_EXISTS")
    db.refresh(new_user)

    logger.info(f"New user registered: {new_user.id}")
    return envelope("User registered successfully", _token_payload(new_user, settings))


@router.post("/login")
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Exchange email and password for a bearer token"""
    db_user = db.query(User).filter(User.email == credentials.email).first()
    if not db_user or not verify_password(credentials.password, db_user.hashed_password):
        logger.info("Failed login attempt")
        raise AuthError("Invalid email or password", code="INVALID_CREDENTIALS")

    if not db_user.is_active:
        raise AuthError("Account has been deactivated. Please contact administrator.", code="ACCOUNT_DEACTIVATED")

    logger.info(f"User {db_user.id} logged in")
    return envelope("Login successful", _token_payload(db_user, settings))


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's profile"""
    return envelope("User profile retrieved successfully", {"user": UserOut.model_validate(current_user).to_json()})


@router.put("/me")
def update_me(
    profile: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update name, department or avatar"""
    update_data = profile.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return envelope("Profile updated successfully", {"user": UserOut.model_validate(current_user).to_json()})


@router.put("/change-password")
def change_password(
    passwords: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    """Change password after checking the current one"""
    if not verify_password(passwords.current_password, current_user.hashed_password):
        raise ValidationError(
            "Current password is incorrect",
            code="INVALID_CURRENT_PASSWORD",
            errors={"currentPassword": "Current password is incorrect"},
        )

    current_user.hashed_password = hash_password(passwords.new_password, settings.bcrypt_rounds)
    db.commit()

    logger.info(f"User {current_user.id} changed password")
    return envelope("Password changed successfully")


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy"""
    logger.info(f"User {current_user.id} logged out")
    return envelope("Logout successful")


@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active users, for picking assignees and team members"""
    users = db.query(User).filter(User.is_active.is_(True)).order_by(User.name.asc()).all()
    data = [UserOut.model_validate(user).to_json() for user in users]
    return envelope("Users retrieved successfully", {"users": data, "count": len(data)})
