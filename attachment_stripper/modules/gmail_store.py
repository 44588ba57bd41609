"""
Gmail Mail Store
MailStore backed by the Gmail REST API

Credentials must already exist in a token file written by an earlier
authorization; this module only loads and refreshes them.
"""

import logging
import os
from typing import Any, List, Optional, Sequence

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import MailStoreError
from .mail_store import MailStore
from .message_model import Message, RebuiltMessage, decode_base64url


DEFAULT_SCOPES = ["https://mail.google.com/"]


def build_gmail_service(token_file: str, scopes: Optional[Sequence[str]] = None) -> Any:
    """
    Load an authorized user token and build a Gmail API service

    Args:
        token_file: Path to the authorized user JSON token
        scopes: OAuth scopes the token was granted

    Returns:
        A googleapiclient Resource for the Gmail v1 API

    Raises:
        MailStoreError: If the token is missing, invalid or cannot be refreshed
    """
    logger = logging.getLogger("GmailMailStore")
    scopes = list(scopes or DEFAULT_SCOPES)

    if not os.path.exists(token_file):
        raise MailStoreError("authorize", f"token file '{token_file}' not found")

    creds = Credentials.from_authorized_user_file(token_file, scopes)

    if not creds.valid:
        if not (creds.expired and creds.refresh_token):
            raise MailStoreError("authorize", "token is invalid and cannot be refreshed")

        logger.info("Token expired, attempting refresh...")
        creds.refresh(Request())
        with open(token_file, "w") as token:
            token.write(creds.to_json())
        logger.info("Token refreshed successfully")

    return build("gmail", "v1", credentials=creds, cache_discovery=False)


class GmailMailStore(MailStore):
    """Gmail implementation of MailStore"""

    def __init__(self, service: Any, user_id: str = "me"):
        """
        Args:
            service: Gmail API Resource (see build_gmail_service)
            user_id: Mailbox owner, "me" for the authorized user
        """
        self.service = service
        self.user_id = user_id
        self.logger = logging.getLogger("GmailMailStore")

    def _messages(self):
        return self.service.users().messages()

    def list_message_ids(self, query: str) -> List[str]:
        ids: List[str] = []
        page_token = None

        try:
            while True:
                kwargs = {"userId": self.user_id, "q": query}
                if page_token:
                    kwargs["pageToken"] = page_token
                response = self._messages().list(**kwargs).execute()

                ids.extend(m["id"] for m in response.get("messages", []))
                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as e:
            raise MailStoreError("list", str(e)) from e

        self.logger.debug(f"Query [{query}] matched {len(ids)} messages")
        return ids

    def get_message(self, message_id: str, format: str = "full") -> Message:
        try:
            response = self._messages().get(
                userId=self.user_id, id=message_id, format=format
            ).execute()
        except HttpError as e:
            raise MailStoreError("get", str(e), message_id) from e
        return Message.from_api(response)

    def get_attachment(self, message_id: str, attachment_id: str) -> bytes:
        self.logger.info(f"Getting attachment with ID [{attachment_id}]")
        try:
            response = self._messages().attachments().get(
                userId=self.user_id, messageId=message_id, id=attachment_id
            ).execute()
        except HttpError as e:
            raise MailStoreError("get attachment", str(e), message_id) from e
        return decode_base64url(response.get("data", ""))

    def insert_message(self, message: RebuiltMessage, internal_date_source: str = "dateHeader") -> str:
        try:
            response = self._messages().insert(
                userId=self.user_id,
                body=message.to_api(),
                internalDateSource=internal_date_source,
            ).execute()
        except HttpError as e:
            raise MailStoreError("insert", str(e)) from e
        return response.get("id", "")

    def delete_message(self, message_id: str) -> None:
        try:
            self._messages().delete(userId=self.user_id, id=message_id).execute()
        except HttpError as e:
            raise MailStoreError("delete", str(e), message_id) from e
