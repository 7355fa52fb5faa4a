import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """A vendor call failed, or the gateway is missing credentials (config_error)"""

    def __init__(self, gateway: str, message: str, details: Optional[dict] = None, config_error: bool = False):
        super().__init__(message)
        self.gateway = gateway
        self.message = message
        self.details = details or {}
        self.config_error = config_error


class InvalidSignatureError(PaymentGatewayError):
    """Callback or webhook whose checksum/signature does not match"""


class CheckoutSession(BaseModel):
    """What the browser needs to open the vendor checkout"""
    gateway: str
    order_id: str
    amount: float
    currency: str = "INR"
    params: Dict[str, Any] = {}
    redirect_url: Optional[str] = None
    vendor_subscription_id: Optional[str] = None


class PaymentResult(BaseModel):
    """Verified outcome of a callback or webhook"""
    gateway: str
    order_id: Optional[str] = None
    success: bool
    payment_id: Optional[str] = None
    amount: Optional[float] = None
    failure_reason: Optional[str] = None
    event: Optional[str] = None
    vendor_subscription_id: Optional[str] = None
    raw: Dict[str, Any] = {}


def lower_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


class PaymentGateway:
    name = ""
    order_prefix = "ORDER"

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.gateway_timeout_seconds

    def credentials(self) -> Dict[str, str]:
        return {}

    def ensure_configured(self):
        missing = [env for env, value in self.credentials().items() if not value]
        if missing:
            raise PaymentGatewayError(
                self.name,
                f"{self.name} is not configured: missing {', '.join(missing)}",
                config_error=True
            )

    def callback_url(self, suffix: str = "callback") -> str:
        return f"{settings.public_api_url}{settings.api_v1_str}/payments/{self.name}/{suffix}"

    def webhook_url(self) -> str:
        return f"{settings.public_api_url}{settings.api_v1_str}/webhooks/{self.name}"

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        """Call the vendor API and return its JSON body; vendor errors become PaymentGatewayError"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise PaymentGatewayError(self.name, f"{self.name} request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise PaymentGatewayError(self.name, f"{self.name} network error: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {'raw': response.text}

        if response.status_code >= 400:
            logger.error(f"{self.name}: HTTP {response.status_code} from {url}")
            raise PaymentGatewayError(
                self.name,
                self._error_message(data) or f"{self.name} returned HTTP {response.status_code}",
                details=data
            )
        return data

    def _error_message(self, data: dict) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        error = data.get('error')
        if isinstance(error, dict):
            return error.get('description') or error.get('message')
        return error or data.get('message')

    async def create_checkout(
        self,
        reference: str,
        package: dict,
        customer: dict,
        amount: float,
        enable_auto_pay: bool = False
    ) -> CheckoutSession:
        raise NotImplementedError

    async def verify_callback(self, payload: dict) -> PaymentResult:
        raise NotImplementedError

    def parse_webhook(self, headers: Mapping[str, str], raw_body: bytes) -> PaymentResult:
        raise PaymentGatewayError(self.name, f"{self.name} does not send webhooks")
