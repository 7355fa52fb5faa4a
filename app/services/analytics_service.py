import logging
from datetime import datetime
from app.core.firebase import get_firestore_client
from app.utils.formatting import error_category

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self):
        self.db = get_firestore_client()
        self.events_collection = 'directory_events'
        self.errors_collection = 'directory_errors'
        self.payment_errors_collection = 'payment_errors'

    def log_event(
        self,
        event_name: str,
        user_id: str = None,
        parameters: dict = None,
    ):
        """
        Store a product analytics event in Firestore.
        Failures are logged and swallowed so they never break the request.
        """
        logger.debug(f"log_event: Entry - {event_name}, user: {user_id}")

        try:
            self.db.collection(self.events_collection).add({
                'event_name': event_name,
                'user_id': user_id,
                'parameters': parameters or {},
                'timestamp': datetime.utcnow()
            })
        except Exception as e:
            logger.error(f"log_event: Failure - {e}")

    def log_error(
        self,
        error: str,
        action: str,
        user_id: str = None,
        parameters: dict = None,
        fatal: bool = False
    ):
        """Store an error report, tagged with its category (permission/network/unknown)"""
        try:
            self.db.collection(self.errors_collection).add({
                'action': action,
                'user_id': user_id,
                'error_message': error,
                'category': error_category(error),
                'parameters': parameters or {},
                'fatal': fatal,
                'timestamp': datetime.utcnow()
            })
        except Exception as e:
            logger.error(f"log_error: Failure - {e}")

    def log_success(self, action: str, user_id: str = None, parameters: dict = None):
        self.log_event(
            event_name=f'{action}_success',
            user_id=user_id,
            parameters={'status': 'success', **(parameters or {})}
        )

    def log_failure(self, action: str, error: str, user_id: str = None, parameters: dict = None):
        """Record a failed action both as an analytics event and as an error report"""
        self.log_event(
            event_name=f'{action}_failure',
            user_id=user_id,
            parameters={'status': 'failure', 'error': error, **(parameters or {})}
        )
        self.log_error(error=error, action=action, user_id=user_id, parameters=parameters)

    def log_payment_error(
        self,
        gateway: str,
        error: str,
        user_id: str = None,
        order_id: str = None,
        details: dict = None
    ):
        """Gateway failures go to their own collection for reconciliation"""
        logger.info(f"log_payment_error: Entry - {gateway}, order: {order_id}")

        try:
            self.db.collection(self.payment_errors_collection).add({
                'gateway': gateway,
                'user_id': user_id,
                'order_id': order_id,
                'error_message': error,
                'category': error_category(error),
                'details': details or {},
                'timestamp': datetime.utcnow()
            })
        except Exception as e:
            logger.error(f"log_payment_error: Failure - {e}")
