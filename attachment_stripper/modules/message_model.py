"""
Message Data Model
Dataclasses for a fetched message, its MIME part tree and the rebuilt copy
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


Header = Tuple[str, str]


def decode_base64url(data: str) -> bytes:
    """
    Decode base64url text, tolerating missing padding

    The mail API returns body and attachment data in the URL-safe alphabet,
    sometimes without trailing '=' padding.

    Raises:
        ValueError: If the text is not valid base64url
    """
    if not data:
        return b""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64url data: {e}") from e


@dataclass
class PartBody:
    """Body of a MIME part: inline bytes or a reference to stored attachment bytes"""
    data: bytes = b""
    attachment_id: str = ""
    size: int = 0

    @classmethod
    def from_api(cls, body: Dict[str, Any]) -> "PartBody":
        return cls(
            data=decode_base64url(body.get("data", "")),
            attachment_id=body.get("attachmentId", ""),
            size=int(body.get("size", 0) or 0),
        )


@dataclass
class MimePart:
    """
    A node in a message's body tree

    A part with children is a multipart container, a part with a filename is
    an attachment (regardless of children), anything else is inline content.
    Trees are built once from a fetched message and then only read.
    """
    headers: List[Header] = field(default_factory=list)
    filename: str = ""
    body: Optional[PartBody] = None
    children: List["MimePart"] = field(default_factory=list)
    mime_type: str = ""
    part_id: str = ""

    @property
    def is_attachment(self) -> bool:
        return bool(self.filename)

    @property
    def is_container(self) -> bool:
        return bool(self.children) and not self.is_attachment

    def header(self, name: str) -> Optional[str]:
        """Return the first header value matching name (case-insensitive)"""
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return None

    def walk(self) -> Iterator["MimePart"]:
        """Yield this part and all descendants, depth-first"""
        yield self
        for child in self.children:
            yield from child.walk()

    def attachments(self) -> List["MimePart"]:
        """Attachment parts of the tree, in walk order"""
        return [part for part in self.walk() if part.is_attachment]

    @classmethod
    def from_api(cls, part: Dict[str, Any]) -> "MimePart":
        """
        Build a part tree from a mail API MessagePart object

        Args:
            part: Dict with headers, filename, body, parts, mimeType, partId

        Returns:
            Root MimePart of the converted tree
        """
        body = part.get("body")
        return cls(
            headers=[(h.get("name", ""), h.get("value", "")) for h in part.get("headers") or []],
            filename=part.get("filename") or "",
            body=PartBody.from_api(body) if body is not None else None,
            children=[cls.from_api(child) for child in part.get("parts") or []],
            mime_type=part.get("mimeType", ""),
            part_id=part.get("partId", ""),
        )


@dataclass
class Message:
    """A fetched message with its metadata and (for full fetches) its part tree"""
    id: str
    thread_id: str = ""
    label_ids: List[str] = field(default_factory=list)
    internal_date: str = ""
    payload: Optional[MimePart] = None
    snippet: str = ""
    size_estimate: int = 0

    @classmethod
    def from_api(cls, message: Dict[str, Any]) -> "Message":
        payload = message.get("payload")
        return cls(
            id=message.get("id", ""),
            thread_id=message.get("threadId", ""),
            label_ids=list(message.get("labelIds") or []),
            internal_date=str(message.get("internalDate", "")),
            payload=MimePart.from_api(payload) if payload is not None else None,
            snippet=message.get("snippet", ""),
            size_estimate=int(message.get("sizeEstimate", 0) or 0),
        )


@dataclass
class RebuiltMessage:
    """
    A reconstructed message ready for insertion

    It has no id of its own; the mail store assigns one on insert.
    """
    thread_id: str
    label_ids: List[str]
    internal_date: str
    raw_payload: str

    def raw_bytes(self) -> bytes:
        """The RFC822 document behind raw_payload"""
        return decode_base64url(self.raw_payload)

    def to_api(self) -> Dict[str, Any]:
        """Request body for the mail API's insert call"""
        body: Dict[str, Any] = {"raw": self.raw_payload, "labelIds": list(self.label_ids)}
        if self.thread_id:
            body["threadId"] = self.thread_id
        if self.internal_date:
            body["internalDate"] = self.internal_date
        return body
