from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator
from typing import Annotated, Optional, List, Union


class Settings(BaseSettings):
    # Database
    database_url: str

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    redis_password: Optional[str] = None
    redis_db: int = 0
    cache_enabled: bool = True
    listing_cache_ttl_minutes: int = 10
    rate_limit_enabled: bool = True

    # Firebase
    firebase_project_id: str
    firebase_credentials_path: str

    # API
    api_v1_str: str = "/api/v1"
    site_url: str = "https://growbharatvyapaar.com"
    api_base_url: Optional[str] = None
    admin_emails: Annotated[List[str], NoDecode] = []

    # Environment
    environment: str = "development"
    debug: bool = True

    # CORS
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:5173"]

    # Referrals
    referral_commission_rate: float = 0.2

    # Razorpay
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_webhook_secret: str = ""
    razorpay_api_url: str = "https://api.razorpay.com/v1"

    # Paytm
    paytm_mid: str = ""
    paytm_merchant_key: str = ""
    paytm_website: str = "WEBSTAGING"
    paytm_industry_type: str = "Retail"
    paytm_channel_id: str = "WEB"
    paytm_api_url: str = "https://securegw-stage.paytm.in"

    # PhonePe
    phonepe_merchant_id: str = ""
    phonepe_salt_key: str = ""
    phonepe_salt_index: str = "1"
    phonepe_api_url: str = "https://api.phonepe.com/apis/hermes"

    # Instamojo
    instamojo_api_key: str = ""
    instamojo_auth_token: str = ""
    instamojo_salt: str = ""
    instamojo_api_url: str = "https://api.instamojo.com/v2"

    # PayU
    payu_merchant_key: str = ""
    payu_merchant_salt: str = ""
    payu_checkout_url: str = "https://secure.payu.in/_payment"

    gateway_timeout_seconds: float = 20.0

    @field_validator('cors_origins', 'admin_emails', mode='before')
    @classmethod
    def parse_comma_separated(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from environment variable (comma-separated) or use default list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    @property
    def public_api_url(self) -> str:
        """Base URL vendors call back into; defaults to the site URL."""
        return (self.api_base_url or self.site_url).rstrip('/')

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
