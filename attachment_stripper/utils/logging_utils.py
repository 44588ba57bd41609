import logging
import copy
from attachment_stripper.utils.colors import Colors


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter to add colors to log levels and specific messages.
    Highlights per-message progress and dims skipped messages.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GREY,
        logging.INFO: Colors.BLUE,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED
    }

    def format(self, record):
        # Work on a copy so file handlers never see ANSI codes
        record = copy.copy(record)

        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"

        if isinstance(record.msg, str):
            if "Processing message" in record.msg:
                record.msg = f"{Colors.MAGENTA}{Colors.BOLD}{record.msg}{Colors.RESET}"
            elif record.msg.startswith("Skipped message"):
                record.msg = f"{Colors.GREY}{record.msg}{Colors.RESET}"
            elif "Stripped attachments" in record.msg:
                record.msg = f"{Colors.GREEN}{record.msg}{Colors.RESET}"

        return super().format(record)
