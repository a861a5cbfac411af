# hello_chatbot/utils/__init__.py

"""Security helpers: Fernet encryption of secret options and masking for logs."""

from .security import FernetEncryptor, generate_fernet_key, mask_secret

__all__ = ["FernetEncryptor", "generate_fernet_key", "mask_secret"]
