# taskhub/utils/auth.py
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskhub.config.settings import Settings
from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.utils.access import AccessPolicy
from taskhub.utils.errors import AuthError
from taskhub.utils.security import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthError("Access denied. No token provided.", code="NO_TOKEN")

    user_id = decode_access_token(credentials.credentials, settings)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning(f"Token presented for unknown user {user_id}")
        raise AuthError("Access denied. User not found.", code="AUTH_FAILED")

    # Check if user is active
    if not user.is_active:
        logger.warning(f"Token presented for deactivated user {user_id}")
        raise AuthError("Account has been deactivated. Please contact administrator.", code="AUTH_FAILED")

    return user


def get_access_policy(current_user: User = Depends(get_current_user)) -> AccessPolicy:
    return AccessPolicy(current_user)
