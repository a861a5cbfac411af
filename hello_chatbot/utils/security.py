# hello_chatbot/utils/security.py
import logging
from typing import Optional
from base64 import urlsafe_b64decode
from binascii import Error as Base64Error

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


def generate_fernet_key() -> str:
    """Generates a new Fernet key and returns it as a string."""
    return Fernet.generate_key().decode('utf-8')


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Masks a secret for logs and admin views, keeping a short prefix."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * 8


class FernetEncryptor:
    """Symmetric encryption for secret option values."""

    def __init__(self, encryption_key: Optional[str]):
        """
        Args:
            encryption_key: Base64-encoded Fernet key string, or None
        """
        self.fernet_instance: Optional[Fernet] = None
        self.key_valid = False

        if not encryption_key:
            logger.warning(
                "HELLO_CHATBOT_ENCRYPTION_KEY is not set. "
                "Secret options will be stored unencrypted."
            )
            return

        try:
            key_bytes = encryption_key.encode('utf-8')
            # Fernet keys decode to exactly 32 bytes
            if len(urlsafe_b64decode(key_bytes)) != 32:
                logger.error("Invalid HELLO_CHATBOT_ENCRYPTION_KEY length after base64 decoding.")
                return
            self.fernet_instance = Fernet(key_bytes)
            self.key_valid = True
            logger.debug("FernetEncryptor initialized with a valid key.")
        except (Base64Error, ValueError) as e:
            logger.error(f"Failed to initialize FernetEncryptor with provided key: {e}")

    def encrypt(self, data: str) -> Optional[str]:
        """Returns the encrypted string, or None if no valid key is configured."""
        if not self.fernet_instance:
            logger.error("Cannot encrypt: Fernet instance not available or key is invalid.")
            return None
        return self.fernet_instance.encrypt(data.encode('utf-8')).decode('utf-8')

    def decrypt(self, encrypted_data: str) -> Optional[str]:
        """Returns the plain text, or None if the key is missing or does not match."""
        if not self.fernet_instance:
            logger.error("Cannot decrypt: Fernet instance not available or key is invalid.")
            return None
        try:
            return self.fernet_instance.decrypt(encrypted_data.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            logger.error(
                "Decryption failed: Invalid token. "
                "This may be due to an incorrect key or corrupted data."
            )
            return None
