from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Identity provider (hardcoded - Microsoft Entra ID v2 endpoints)
# Official "Microsoft Graph PowerShell" public client ID, overridable via AZURE_CLIENT_ID
DEFAULT_CLIENT_ID = "14d82eec-204b-4c2f-b7e8-296a70dab67e"
CLIENT_ID_ENV_VAR = "AZURE_CLIENT_ID"
AUTHORITY_HOST = "https://login.microsoftonline.com"
DEFAULT_TENANT = config.get("O365_TENANT", "common")
SCOPES = ["User.Read", "Directory.ReadWrite.All", "offline_access"]

# Microsoft Graph (used by the bundled worker)
GRAPH_API_BASE = config.get("GRAPH_API_BASE", "https://graph.microsoft.com/v1.0")

# Token endpoint timeout in seconds
TOKEN_REQUEST_TIMEOUT = config.get("TOKEN_REQUEST_TIMEOUT", 30.0)

# Seconds to wait for the browser redirect; 0 waits forever
OAUTH_CALLBACK_TIMEOUT = config.get("OAUTH_CALLBACK_TIMEOUT", 0.0)

# Secret vault entry holding the refresh token
KEYRING_SERVICE = config.get("KEYRING_SERVICE", "o365-cli")
KEYRING_ACCOUNT = config.get("KEYRING_ACCOUNT", "refresh_token")

# Files kept under <project root>/cli/
LEGACY_TOKEN_FILENAME = ".o365_cli_token"
PROFILE_FILENAME = ".o365_cli_profile.json"

# Worker process
# Empty runtime means "the interpreter running the CLI"
WORKER_RUNTIME = config.get("WORKER_RUNTIME", "")
WORKER_ENTRY = config.get("WORKER_ENTRY", "worker/__main__.py")
# Progress events buffered between the stdout reader and the consumer
PROGRESS_BUFFER = config.get("PROGRESS_BUFFER", 256)

# Logging
LOG_FILE = config.get("LOG_FILE", "o365-cli.log")
LOG_LEVEL = config.get("LOG_LEVEL", "info")
