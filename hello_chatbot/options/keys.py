# hello_chatbot/options/keys.py
"""Well-known option names shared by the credential cache, relay and admin API."""

CHATBOT_ENABLED = "chatbot_enabled"
CHATBOT_API_ENDPOINT = "chatbot_api_endpoint"
CHATBOT_WELCOME_MESSAGE = "chatbot_welcome_message"
CHATBOT_POSITION = "chatbot_position"

# Prompt -> canned {answer, references}; matching messages skip the knowledge base
CHATBOT_CUSTOM_RESPONSES = "chatbot_custom_responses"

# Manually configured bearer token, used verbatim when OAuth is off
# and as the fallback when an OAuth refresh fails
CHATBOT_API_TOKEN = "chatbot_api_token"

# Credential persisted by the OAuth refresh; always written together
CHATBOT_OAUTH_ACCESS_TOKEN = "chatbot_oauth_access_token"
CHATBOT_TOKEN_EXPIRES_AT = "chatbot_token_expires_at"

CHATBOT_USE_OAUTH = "chatbot_use_oauth"
CHATBOT_OAUTH_CLIENT_ID = "chatbot_oauth_client_id"
CHATBOT_OAUTH_CLIENT_SECRET = "chatbot_oauth_client_secret"
CHATBOT_OAUTH_TENANT_ID = "chatbot_oauth_tenant_id"
CHATBOT_OAUTH_SCOPE = "chatbot_oauth_scope"
CHATBOT_OAUTH_ENDPOINT = "chatbot_oauth_endpoint"

OAUTH_CONFIG_OPTIONS = (
    CHATBOT_USE_OAUTH,
    CHATBOT_OAUTH_CLIENT_ID,
    CHATBOT_OAUTH_CLIENT_SECRET,
    CHATBOT_OAUTH_TENANT_ID,
    CHATBOT_OAUTH_SCOPE,
    CHATBOT_OAUTH_ENDPOINT,
)

# Encrypted at rest when an encryption key is configured
SECRET_OPTIONS = frozenset({CHATBOT_OAUTH_CLIENT_SECRET, CHATBOT_API_TOKEN, CHATBOT_OAUTH_ACCESS_TOKEN})

DEFAULT_WELCOME_MESSAGE = "Welcome to the chatbot. How can I help you today?"
DEFAULT_POSITION = "bottom-right"
