"""
Configuration Management Module
Handles loading and validation of environment variables and settings
"""

import os
from typing import List
from dataclasses import dataclass
from dotenv import load_dotenv


LOG_FORMATS = ("text", "json")


@dataclass
class GmailConfig:
    """Configuration for the Gmail mailbox"""
    user_id: str
    token_file: str
    scopes: List[str]


@dataclass
class StripperConfig:
    """Configuration for attachment stripping"""
    query: str
    max_messages: int
    dry_run: bool
    delete_original: bool
    max_mime_depth: int


@dataclass
class SystemConfig:
    """Configuration for system settings"""
    log_level: str
    log_file: str
    log_format: str


class Config:
    """Main configuration class"""

    def __init__(self, env_file: str = ".env"):
        """
        Initialize configuration from environment file

        Args:
            env_file: Path to environment file (default: .env)
        """
        load_dotenv(env_file)

        self.gmail = self._load_gmail_config()
        self.stripper = self._load_stripper_config()
        self.system = self._load_system_config()

    def _load_gmail_config(self) -> GmailConfig:
        """Load mailbox configuration"""
        return GmailConfig(
            user_id=os.getenv("GMAIL_USER_ID", "me"),
            token_file=os.getenv("GMAIL_TOKEN_FILE", "token.json"),
            scopes=self._parse_list(os.getenv("GMAIL_SCOPES", "https://mail.google.com/")),
        )

    def _load_stripper_config(self) -> StripperConfig:
        """Load stripping configuration"""
        return StripperConfig(
            query=os.getenv("STRIP_QUERY", "size:15000000"),
            max_messages=int(os.getenv("MAX_MESSAGES", "0")),
            dry_run=self._get_bool("DRY_RUN", True),
            delete_original=self._get_bool("DELETE_ORIGINAL", True),
            max_mime_depth=int(os.getenv("MAX_MIME_DEPTH", "100")),
        )

    def _load_system_config(self) -> SystemConfig:
        """Load system configuration"""
        return SystemConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/attachment_stripper.log"),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
        )

    @staticmethod
    def _parse_list(value: str) -> List[str]:
        """Split a comma or newline separated value into a clean list."""
        return [
            item.strip()
            for item in value.replace("\n", ",").split(",")
            if item.strip()
        ]

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        """Convert environment variable to boolean"""
        value = os.getenv(key, str(default)).lower()
        return value in ('true', '1', 'yes', 'on')

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if configuration is valid

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.gmail.user_id:
            raise ValueError("GMAIL_USER_ID must not be empty")

        if not self.gmail.scopes:
            raise ValueError("At least one Gmail scope must be configured")

        if not self.stripper.query.strip():
            raise ValueError("STRIP_QUERY must not be empty")

        if self.stripper.max_messages < 0:
            raise ValueError("MAX_MESSAGES cannot be negative")

        if self.stripper.max_mime_depth < 1:
            raise ValueError("MAX_MIME_DEPTH must be at least 1")

        if self.system.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Unknown LOG_FORMAT '{self.system.log_format}'; "
                f"expected one of {', '.join(LOG_FORMATS)}"
            )

        return True
