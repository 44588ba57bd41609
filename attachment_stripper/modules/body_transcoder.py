"""
Body Transcoder Module
Re-encodes decoded body bytes as quoted-printable text

Hard CRLF line breaks survive as line breaks. Every other byte that is not
safe printable ASCII, including a bare CR or LF, is written as an =XX escape,
so decoding the output always gives back the exact input bytes. No output
line is longer than 76 characters; longer lines are split with =CRLF soft
breaks that never cut through an =XX escape.
"""

import binascii

CRLF = b"\r\n"
SOFT_BREAK = b"=\n"
MAX_LINE_LENGTH = 76


def _wrap(encoded: bytes) -> bytes:
    """Split one encoded line into soft-broken lines of at most 76 characters"""
    lines = []
    current = bytearray()
    i = 0
    while i < len(encoded):
        # The last piece needs no room for a trailing "="
        if len(current) + len(encoded) - i <= MAX_LINE_LENGTH:
            current += encoded[i:]
            break

        token = encoded[i:i + 3] if encoded[i:i + 1] == b"=" else encoded[i:i + 1]
        if len(current) + len(token) > MAX_LINE_LENGTH - 1:
            lines.append(bytes(current) + b"=")
            current = bytearray()
        current += token
        i += len(token)

    lines.append(bytes(current))
    return CRLF.join(lines)


def _encode_line(line: bytes) -> bytes:
    # b2a_qp wraps at 76 but can put its soft-break "=" in column 77 on lines
    # mixing whitespace and escapes, so its soft breaks are removed and the
    # line is wrapped again. A literal "=" is always escaped, so "=\n" only
    # ever marks a soft break.
    encoded = binascii.b2a_qp(line, quotetabs=False, istext=False, header=False)
    return _wrap(encoded.replace(SOFT_BREAK, b""))


def transcode(raw: bytes) -> str:
    """
    Encode bytes as quoted-printable text

    Args:
        raw: Body bytes, already decoded from the transport encoding

    Returns:
        Quoted-printable text using CRLF line endings
    """
    return CRLF.join(_encode_line(line) for line in raw.split(CRLF)).decode("ascii")


def decode(text: str) -> bytes:
    """Inverse of transcode()"""
    return binascii.a2b_qp(text.encode("ascii"), header=False)
