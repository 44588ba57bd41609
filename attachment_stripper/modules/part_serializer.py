"""
Part Serializer Module
Walks a MIME part tree and writes a boundary-delimited raw message body,
leaving out every attachment part

Each inline part is written as its headers, a blank line, its
quoted-printable body and a delimiter line. The delimiter written after the
last inline part is turned into the closing "--boundary--" marker.

NOTE: The root boundary is reused at every nesting level. Nested multiparts
that declare their own boundary are delimited with the root one.
"""

import io
import logging

from .body_transcoder import transcode
from .errors import MalformedOutputError, MimeDepthExceededError, NegativeDepthError
from .message_model import MimePart


logger = logging.getLogger(__name__)

CRLF = "\r\n"
DEFAULT_MAX_DEPTH = 100


class PartSerializer:
    """Serializes a part tree without its attachments"""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Args:
            max_depth: Deepest nesting level accepted before giving up
        """
        self.max_depth = max_depth

    def serialize(self, part: MimePart, boundary: str, depth: int = 0) -> str:
        """
        Serialize part and its descendants

        Args:
            part: Root of the (sub)tree to write
            boundary: Delimiter token used at every level
            depth: Nesting level of part; 0 for the message root

        Returns:
            Raw body text; at depth 0 it ends with "--<boundary>--"

        Raises:
            NegativeDepthError: If depth is negative
            MimeDepthExceededError: If the tree nests deeper than max_depth
            MalformedOutputError: If no part delimiter was written at all,
                e.g. when every leaf is an attachment
        """
        if depth < 0:
            raise NegativeDepthError(
                f"Recursion depth [{depth}] cannot be less than 0"
            )

        out = io.StringIO()
        inline_parts = self._write_part(out, part, boundary, depth)
        result = out.getvalue()

        if depth > 0:
            return result

        # Root headers alone also end in CRLF, so the last line written must
        # be a delimiter and at least one inline part must precede it
        delimiter = f"--{boundary}{CRLF}"
        if inline_parts == 0 or not result.endswith(delimiter):
            raise MalformedOutputError(
                f"Expected suffix [{delimiter!r}] after at least one inline part "
                f"({inline_parts} written)",
                detail=result[-200:],
            )

        # The last delimiter gets a trailing "--" in place of its line break
        return result[:-len(CRLF)] + "--"

    def _write_part(self, out: io.StringIO, part: MimePart, boundary: str, depth: int) -> int:
        """Write part to out and return how many inline leaves were written"""
        if depth > self.max_depth:
            raise MimeDepthExceededError(
                f"MIME nesting exceeds maximum depth of {self.max_depth}",
                detail=f"part {part.part_id or '?'} at depth {depth}",
            )

        if part.is_attachment:
            logger.debug(f"Omitting attachment part {part.part_id or '?'} at depth {depth}")
            return 0

        inline_parts = 0
        for name, value in part.headers:
            out.write(f"{name}: {value}{CRLF}")

        if part.body is not None:
            out.write(CRLF)
            # A container's own body is an empty preamble
            if not part.children:
                out.write(transcode(part.body.data))
                inline_parts += 1
            out.write(CRLF)
            out.write(f"--{boundary}{CRLF}")

        for child in part.children:
            inline_parts += self._write_part(out, child, boundary, depth + 1)

        return inline_parts
