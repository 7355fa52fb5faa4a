from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.core.firebase import verify_firebase_token, has_admin_claim
from app.models.user import User
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _user_from_token(decoded_token: dict) -> dict:
    user_id = decoded_token.get('uid')
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )
    return {
        'uid': user_id,
        'email': decoded_token.get('email'),
        'name': decoded_token.get('name'),
        'is_admin_claim': has_admin_claim(decoded_token),
        'token': decoded_token
    }


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    Dependency to get current authenticated user from Firebase token.
    Protects routes that require authentication.
    """
    logger.info("get_current_user: Entry")

    try:
        decoded_token = verify_firebase_token(credentials.credentials)
        user_dict = _user_from_token(decoded_token)
        logger.info(f"get_current_user: Success - {user_dict['uid']}")
        return user_dict
    except Exception as e:
        logger.error(f"get_current_user: Failure - {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(optional_security)
) -> dict | None:
    """Same as get_current_user but anonymous requests pass through as None"""
    if credentials is None:
        return None
    try:
        return _user_from_token(verify_firebase_token(credentials.credentials))
    except Exception as e:
        logger.debug(f"get_optional_user: Ignoring invalid token - {e}")
        return None


def is_admin(current_user: dict, user: User | None) -> bool:
    """Admin if the users row says so, the token carries the claim, or the email is allow-listed"""
    if current_user.get('is_admin_claim'):
        return True
    if current_user.get('email') and current_user['email'] in settings.admin_emails:
        return True
    if user is None:
        return False
    return bool(user.is_admin) or (user.role or '').lower() == 'admin'


async def get_current_admin(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> dict:
    """Dependency for back-office routes"""
    user = db.query(User).filter(User.id == current_user['uid']).first()
    if not is_admin(current_user, user):
        logger.warning(f"get_current_admin: Unauthorized - user: {current_user.get('email')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
