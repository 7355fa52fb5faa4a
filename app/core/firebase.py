import firebase_admin
from firebase_admin import credentials, auth, firestore
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialize Firebase Admin SDK"""
    logger.info("init_firebase: Entry")

    try:
        if not firebase_admin._apps:
            cred = credentials.Certificate(settings.firebase_credentials_path)
            firebase_admin.initialize_app(cred, {
                'projectId': settings.firebase_project_id,
            })
            logger.info("init_firebase: Success")
        else:
            logger.info("init_firebase: Already initialized")
    except Exception as e:
        logger.error(f"init_firebase: Failure - {e}")
        raise


def verify_firebase_token(token: str) -> dict:
    """Verify Firebase ID token and return the decoded claims"""
    logger.info("verify_firebase_token: Entry")

    try:
        decoded_token = auth.verify_id_token(token)
        logger.info(f"verify_firebase_token: Success - {decoded_token.get('uid')}")
        return decoded_token
    except Exception as e:
        logger.error(f"verify_firebase_token: Failure - {e}")
        raise


def has_admin_claim(decoded_token: dict) -> bool:
    """True when the token carries the `admin` custom claim"""
    return bool(decoded_token.get('admin')) or decoded_token.get('role') == 'admin'


def set_admin_claim(user_id: str, is_admin: bool):
    """Mirror the admin flag into Firebase custom claims so new tokens carry it"""
    logger.info(f"set_admin_claim: Entry - user: {user_id}, admin: {is_admin}")

    try:
        auth.set_custom_user_claims(user_id, {'admin': is_admin})
        logger.info(f"set_admin_claim: Success - user: {user_id}")
    except Exception as e:
        logger.error(f"set_admin_claim: Failure - {e}")
        raise


def get_firestore_client():
    """Get Firestore client instance"""
    return firestore.client()
