from pathlib import Path
from typing import List
from attachment_stripper.utils.config import Config

def check_default_credentials(config: Config) -> List[str]:
    """
    Check if the configuration still points at missing or example credentials.
    Returns a list of error messages.
    """
    errors = []

    # Default values from .env.example
    DEFAULT_TOKEN_FILES = [
        "path/to/token.json",
        "your-token-file.json"
    ]
    DEFAULT_USER_IDS = [
        "your-email@gmail.com"
    ]

    token_file = config.gmail.token_file
    if token_file in DEFAULT_TOKEN_FILES:
        errors.append(f"Gmail token file uses the example value: {token_file}")
    elif not Path(token_file).exists():
        errors.append(f"Gmail token file not found: {token_file}")

    if config.gmail.user_id in DEFAULT_USER_IDS:
        errors.append(f"Gmail user id uses the example value: {config.gmail.user_id}")

    return errors
