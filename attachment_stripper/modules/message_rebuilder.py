"""
Message Rebuilder Module
Turns a fully fetched message into an attachment-free copy ready for insertion
"""

import base64
import logging

from .boundary_extractor import extract_boundary
from .errors import MessageRebuildError, MissingPayloadError
from .message_model import Message, RebuiltMessage
from .part_serializer import DEFAULT_MAX_DEPTH, PartSerializer


class MessageRebuilder:
    """
    Rebuilds messages without their attachments

    Pure transformation: no mail store access happens here. Labels, thread
    and internal date are copied verbatim so the copy lands where the
    original was.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.serializer = PartSerializer(max_depth=max_depth)
        self.logger = logging.getLogger("MessageRebuilder")

    def rebuild(self, message: Message) -> RebuiltMessage:
        """
        Rebuild message without its attachment parts

        Args:
            message: Message fetched in full format

        Returns:
            RebuiltMessage carrying the base64url raw payload

        Raises:
            MessageRebuildError: Any core failure, stamped with the message id
        """
        try:
            if message.payload is None:
                raise MissingPayloadError("Message must have a payload")

            boundary = extract_boundary(message.payload.headers)
            raw = self.serializer.serialize(message.payload, boundary, 0)
        except MessageRebuildError as e:
            e.message_id = message.id
            raise

        raw_payload = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")
        self.logger.debug(
            f"Rebuilt message {message.id}: {len(raw)} chars without attachments"
        )

        return RebuiltMessage(
            thread_id=message.thread_id,
            label_ids=list(message.label_ids),
            internal_date=message.internal_date,
            raw_payload=raw_payload,
        )
