"""
Encryption utilities

Symmetric encryption (Fernet) for short secrets stored in the database,
such as booking confirmation codes.
"""

from cryptography.fernet import Fernet
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import base64
import hashlib


def get_encryption_key() -> bytes:
    """
    Fernet key derived from settings.ENCRYPTION_KEY

    Any string is accepted; it is hashed to the 32 bytes Fernet requires.
    """
    key = getattr(settings, 'ENCRYPTION_KEY', None)

    if not key:
        raise ImproperlyConfigured("ENCRYPTION_KEY is not configured")

    if isinstance(key, str):
        key = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest())

    return key


def encrypt_string(plaintext: str) -> str:
    if not plaintext:
        return ''
    return Fernet(get_encryption_key()).encrypt(plaintext.encode()).decode()


def decrypt_string(token: str) -> str:
    if not token:
        return ''
    return Fernet(get_encryption_key()).decrypt(token.encode()).decode()
