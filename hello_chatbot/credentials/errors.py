# hello_chatbot/credentials/errors.py


class CredentialError(Exception):
    """Base class for credential lifecycle errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TokenRefreshError(CredentialError):
    """A client-credentials refresh did not produce a token."""


class OAuthConfigIncompleteError(TokenRefreshError):
    """
    Client id, client secret or token endpoint is missing.

    Raised before any network call. Not worth retrying until the
    configuration changes.
    """

    def __init__(self, message: str = "OAuth2 configuration incomplete."):
        super().__init__(message)


class TokenRefreshFailedError(TokenRefreshError):
    """
    The token endpoint could not be reached or returned an unusable response.

    Covers network errors, non-200 statuses, unparsable bodies and bodies
    without an `access_token`.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CredentialUnavailableError(CredentialError):
    """No usable bearer token by any path (OAuth, persisted or manual)."""

    def __init__(self, message: str = "Unable to obtain authentication token."):
        super().__init__(message)
