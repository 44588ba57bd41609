"""
Rebuild Errors
Exception hierarchy for failures while rebuilding a message without attachments

Every error carries the offending message id (when known) and the header or
content that triggered it, so a batch run can log the failure and move on to
the next message.
"""

from typing import Optional


class MessageRebuildError(Exception):
    """Base class for all failures of the rebuild core"""

    def __init__(self, reason: str, detail: str = "", message_id: Optional[str] = None):
        """
        Args:
            reason: Human readable description of what went wrong
            detail: The header value or content fragment that caused the failure
            message_id: Identifier of the message being rebuilt, if known
        """
        self.reason = reason
        self.detail = detail
        self.message_id = message_id
        super().__init__(reason)

    def __str__(self) -> str:
        parts = [self.reason]
        if self.detail:
            parts.append(f"[{self.detail}]")
        if self.message_id:
            parts.append(f"(message {self.message_id})")
        return " ".join(parts)


class MissingPayloadError(MessageRebuildError):
    """The message has no MIME body tree"""


class BoundaryNotFoundError(MessageRebuildError):
    """No Content-Type header declares a multipart boundary"""


class MultipleBoundariesError(MessageRebuildError):
    """More than one boundary declaration was found; never guessed"""


class MalformedOutputError(MessageRebuildError):
    """The serialized body did not end with a part delimiter"""


class NegativeDepthError(MessageRebuildError):
    """Serialization was entered with a negative recursion depth"""


class MimeDepthExceededError(MessageRebuildError):
    """The MIME tree nests deeper than the configured maximum"""


class MailStoreError(Exception):
    """A mail store operation failed"""

    def __init__(self, operation: str, reason: str, message_id: Optional[str] = None):
        self.operation = operation
        self.reason = reason
        self.message_id = message_id
        target = f" for message {message_id}" if message_id else ""
        super().__init__(f"{operation} failed{target}: {reason}")
