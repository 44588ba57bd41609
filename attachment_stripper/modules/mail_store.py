"""
Mail Store Interface
The mailbox operations the strip pipeline depends on
"""

from abc import ABC, abstractmethod
from typing import List

from .message_model import Message, RebuiltMessage


class MailStore(ABC):
    """
    A mailbox that can be searched, read, written and pruned

    Implementations raise MailStoreError when an operation fails.
    """

    @abstractmethod
    def list_message_ids(self, query: str) -> List[str]:
        """Ids of all messages matching a search query"""

    @abstractmethod
    def get_message(self, message_id: str, format: str = "full") -> Message:
        """Fetch a message in the given format ("metadata", "full", ...)"""

    @abstractmethod
    def get_attachment(self, message_id: str, attachment_id: str) -> bytes:
        """Decoded bytes of a stored attachment"""

    @abstractmethod
    def insert_message(self, message: RebuiltMessage, internal_date_source: str = "dateHeader") -> str:
        """Insert a rebuilt message and return the id assigned to it"""

    @abstractmethod
    def delete_message(self, message_id: str) -> None:
        """Permanently delete a message"""
