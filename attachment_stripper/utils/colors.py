"""
ANSI Color codes for console output formatting
"""

class Colors:
    """ANSI color codes and helper methods"""
    RESET = "\033[0m"
    BOLD = "\033[1m"

    # Text Colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    GREY = "\033[90m"

    @classmethod
    def colorize(cls, text: str, color: str) -> str:
        """Wrap text in color codes"""
        return f"{color}{text}{cls.RESET}"

    @classmethod
    def warning(cls, text: str) -> str:
        """Format as a warning (Yellow)"""
        return f"{cls.YELLOW}{text}{cls.RESET}"

    @classmethod
    def error(cls, text: str) -> str:
        """Format as an error (Red)"""
        return f"{cls.RED}{text}{cls.RESET}"

    @classmethod
    def success(cls, text: str) -> str:
        """Format as success (Green)"""
        return f"{cls.GREEN}{text}{cls.RESET}"

    @classmethod
    def for_outcome(cls, outcome: str) -> str:
        """Get color code for a per-message outcome"""
        outcome = outcome.lower()
        if outcome == "failed":
            return cls.RED
        elif outcome == "skipped":
            return cls.GREY
        elif outcome == "stripped":
            return cls.GREEN
        return cls.RESET
