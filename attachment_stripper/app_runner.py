import os
import sys
import signal
import shutil
from pathlib import Path
from typing import Optional, List, NoReturn

from attachment_stripper.utils.config import Config
from attachment_stripper.utils.colors import Colors


class AppRunner:
    """Encapsulates startup, configuration checks and execution of the attachment stripper."""

    def __init__(self, args: Optional[List[str]] = None) -> None:
        """
        Initialize the runner with CLI arguments.

        Args:
            args: Command line arguments (defaults to sys.argv);
                args[1] is the config file, args[2] an optional search query
        """
        self.args = args if args is not None else sys.argv
        self.config_file = self.args[1] if len(self.args) > 1 else ".env"
        self.query = self.args[2] if len(self.args) > 2 else None

    def run(self) -> None:
        """Execute the main application flow."""
        self.setup_signal_handlers()
        self.print_banner()
        self.ensure_config_exists()
        self.validate_config()
        self.start_pipeline()

    def setup_signal_handlers(self) -> None:
        """Register handlers for graceful shutdown."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    @staticmethod
    def _signal_handler(signum, frame) -> NoReturn:
        """Handle shutdown signals."""
        print("\nReceived shutdown signal, stopping gracefully...")
        raise KeyboardInterrupt

    def print_banner(self) -> None:
        """Print the application startup banner."""
        print(Colors.colorize("=" * 80, Colors.CYAN))
        print(Colors.colorize("Mail Attachment Stripper", Colors.BOLD + Colors.CYAN))
        print(Colors.colorize("Replace large messages with copies that keep everything but the attachments", Colors.GREY))
        print(Colors.colorize("=" * 80, Colors.CYAN))
        print()

    def ensure_config_exists(self) -> None:
        """Check if the configuration file exists, and offer to create it from the template if not."""
        if Path(self.config_file).exists():
            return

        if Path(".env.example").exists() and sys.stdin.isatty():
            self._handle_missing_config_interactive()
        else:
            self._handle_missing_config_non_interactive()

    def _handle_missing_config_interactive(self) -> None:
        """Offer to copy .env.example into place."""
        print(f"Configuration file '{self.config_file}' not found.")
        try:
            response = input(f"Create '{self.config_file}' from template? [Y/n] ").strip().lower()
        except EOFError:
            return self._handle_missing_config_non_interactive()

        if response not in ('', 'y', 'yes'):
            print("Please create a .env file based on .env.example")
            sys.exit(1)

        try:
            shutil.copy(".env.example", self.config_file)
            os.chmod(self.config_file, 0o600)
        except OSError as e:
            print(f"Error creating file: {e}")
            sys.exit(1)

        print(f"Created '{self.config_file}' from '.env.example'.")
        print("IMPORTANT: Please edit it to point at your Gmail token before proceeding.")
        sys.exit(0)

    def _handle_missing_config_non_interactive(self) -> NoReturn:
        """Handle missing configuration when non-interactive or template is missing."""
        print(f"Error: Configuration file '{self.config_file}' not found")
        print("Please create a .env file based on .env.example")
        print("You can run: cp .env.example .env")
        sys.exit(1)

    def validate_config(self) -> None:
        """Validate the configuration and make sure credentials are in place."""
        try:
            config = Config(self.config_file)
            config.validate()
        except ValueError as e:
            print(f"\n{Colors.RED}❌ Configuration Error: {e}{Colors.RESET}")
            sys.exit(1)

        from attachment_stripper.utils.validators import check_default_credentials

        errors = check_default_credentials(config)
        if errors:
            print(f"\n{Colors.RED}❌ Configuration Error: Gmail credentials not ready{Colors.RESET}")
            print(f"{Colors.GREY}The following issues must be resolved before starting:{Colors.RESET}\n")

            for error in errors:
                print(f"  • {Colors.YELLOW}{error}{Colors.RESET}")

            print(f"\nPlease edit {Colors.BOLD}{self.config_file}{Colors.RESET} and authorize Gmail access first.")
            sys.exit(1)

    def start_pipeline(self) -> None:
        """Instantiate and start the main pipeline, then print a summary."""
        from attachment_stripper.main import AttachmentStripperPipeline, setup_logging

        config = Config(self.config_file)
        setup_logging(config.system)

        mode = "dry run" if config.stripper.dry_run else "live"
        print(f"{Colors.GREEN}🚀 Starting attachment stripper ({mode})...{Colors.RESET}")
        pipeline = AttachmentStripperPipeline(config)
        summary = pipeline.start(self.query)
        if summary is not None:
            self.print_summary(summary)

    @staticmethod
    def print_summary(summary) -> None:
        """Print per-outcome counts of a finished run."""
        print()
        print(Colors.colorize(f"Query [{summary.query}] matched {summary.matched} messages", Colors.BOLD))
        rows = [
            ("stripped", "stripped", len(summary.stripped)),
            ("would strip", "stripped", len(summary.would_strip)),
            ("skipped", "skipped", len(summary.skipped)),
            ("failed", "failed", len(summary.failed)),
        ]
        for label, outcome, count in rows:
            print(f"  {Colors.colorize(label.ljust(12), Colors.for_outcome(outcome))} {count}")
        for message_id, error in summary.failed:
            print(f"  {Colors.error('✘')} {message_id}: {error}")
