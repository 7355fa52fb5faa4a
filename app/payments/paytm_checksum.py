"""
Paytm checksum: SHA-256 of `<params>|<salt>` with the 4-character salt
appended, AES-128-CBC encrypted with the merchant key and a fixed IV, then
base64 encoded.
"""
import base64
import binascii
import hashlib
import hmac
import secrets
import string

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

IV = b'@@@@&&&&####$$$$'
SALT_ALPHABET = string.ascii_letters + string.digits


def _encrypt(text: str, key: str) -> str:
    padder = padding.PKCS7(128).padder()
    data = padder.update(text.encode('utf-8')) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key.encode('utf-8')), modes.CBC(IV)).encryptor()
    return base64.b64encode(encryptor.update(data) + encryptor.finalize()).decode('utf-8')


def _decrypt(encrypted: str, key: str) -> str:
    decryptor = Cipher(algorithms.AES(key.encode('utf-8')), modes.CBC(IV)).decryptor()
    data = decryptor.update(base64.b64decode(encrypted)) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return (unpadder.update(data) + unpadder.finalize()).decode('utf-8')


def params_string(params: dict) -> str:
    """Sorted values joined with '|'; CHECKSUMHASH is excluded and null becomes empty"""
    values = []
    for key in sorted(params):
        if key == 'CHECKSUMHASH':
            continue
        value = params[key]
        values.append('' if value is None or value == 'null' else str(value))
    return '|'.join(values)


def _hash(params: str, salt: str) -> str:
    return hashlib.sha256(f"{params}|{salt}".encode('utf-8')).hexdigest() + salt


def generate_signature(params: dict | str, key: str) -> str:
    if isinstance(params, dict):
        params = params_string(params)
    salt = ''.join(secrets.choice(SALT_ALPHABET) for _ in range(4))
    return _encrypt(_hash(params, salt), key)


def verify_signature(params: dict | str, key: str, checksum: str) -> bool:
    if isinstance(params, dict):
        params = params_string(params)
    try:
        paytm_hash = _decrypt(checksum, key)
    except (ValueError, binascii.Error, UnicodeDecodeError):
        return False
    salt = paytm_hash[-4:]
    return hmac.compare_digest(paytm_hash, _hash(params, salt))
