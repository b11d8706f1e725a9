"""
Custom Django model fields for sensitive data.

EncryptedCharField encrypts on the way into the database and decrypts
on the way out; application code only ever sees plaintext.
"""

import logging

from cryptography.fernet import InvalidToken
from django.db import models

from .encryption import decrypt_string, encrypt_string

logger = logging.getLogger(__name__)


class EncryptedCharField(models.TextField):
    """
    Text column holding a Fernet token

    Ciphertext length depends on plaintext length, so the column is a
    TextField; ``max_length`` is accepted for form validation only.
    """

    description = "Encrypted text field"

    def __init__(self, *args, **kwargs):
        self.max_length_validation = kwargs.pop('max_length', None)
        super().__init__(*args, **kwargs)

    def from_db_value(self, value, expression, connection):
        if value is None:
            return value
        try:
            return decrypt_string(value)
        except InvalidToken:
            # Rotated key or corrupted token: treat the secret as gone
            logger.error("Could not decrypt %s.%s", self.model.__name__, self.name)
            return ''

    def get_prep_value(self, value):
        if value is None or value == '':
            return ''
        return encrypt_string(str(value))

    def to_python(self, value):
        if value is None:
            return value
        return str(value)
