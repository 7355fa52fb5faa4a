import secrets
import string
import time
import uuid

REFERRAL_ALPHABET = string.ascii_uppercase + string.digits


def new_id() -> str:
    return str(uuid.uuid4())


def epoch_millis() -> int:
    return int(time.time() * 1000)


def package_id() -> str:
    return f"pkg_{epoch_millis()}"


def referral_code(length: int = 8) -> str:
    return ''.join(secrets.choice(REFERRAL_ALPHABET) for _ in range(length))


def order_id(prefix: str) -> str:
    """Vendor-facing order id, e.g. PAYTM_1718000000000_3F9A2C"""
    return f"{prefix}_{epoch_millis()}_{secrets.token_hex(3).upper()}"
