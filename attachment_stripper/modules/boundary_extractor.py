"""
Boundary Extractor Module
Finds the multipart boundary token declared in a message's root headers

Two strategies are tried per Content-Type header: a strict quoted form
(boundary="token") and, only if that finds nothing, an unquoted form that
runs to the end of the line. Ambiguity is never resolved by guessing.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .errors import BoundaryNotFoundError, MultipleBoundariesError
from ..utils.sanitization import sanitize_for_logging


logger = logging.getLogger(__name__)

QUOTED_BOUNDARY_PATTERN = re.compile(r'boundary="([^"]*)"')
UNQUOTED_BOUNDARY_PATTERN = re.compile(r"boundary=([^\r\n]*)")


def _single_match(matches: List[str], header_value: str) -> Optional[str]:
    if len(matches) > 1:
        raise MultipleBoundariesError(
            f"Found multiple matches for boundary {matches!r}",
            detail=header_value,
        )
    return matches[0] if matches else None


def _extract_from_value(header_value: str) -> str:
    """
    Extract the boundary from one Content-Type value

    Raises:
        MultipleBoundariesError: If a strategy matches more than once
        BoundaryNotFoundError: If neither strategy matches
    """
    boundary = _single_match(QUOTED_BOUNDARY_PATTERN.findall(header_value), header_value)
    if boundary is not None:
        return boundary

    boundary = _single_match(UNQUOTED_BOUNDARY_PATTERN.findall(header_value), header_value)
    if boundary is None:
        raise BoundaryNotFoundError(
            "Failed to find matches for boundary in header",
            detail=header_value,
        )

    logger.info(f"Found boundary on second try [{sanitize_for_logging(boundary)}]")
    return boundary


def extract_boundary(headers: Sequence[Tuple[str, str]]) -> str:
    """
    Find the multipart boundary declared in the given headers

    Args:
        headers: Ordered (name, value) pairs of the root part

    Returns:
        The boundary token

    Raises:
        MultipleBoundariesError: If more than one header declares a boundary,
            or one declaration matches more than once
        BoundaryNotFoundError: If no header yields a non-empty boundary
    """
    boundary = ""
    declaring_header = None

    for name, value in headers:
        if name.lower() != "content-type" or "boundary=" not in value:
            continue

        if declaring_header is not None:
            raise MultipleBoundariesError(
                f"Previously found boundary [{boundary}] in header "
                f"[{declaring_header[0]}: {declaring_header[1]}]. "
                f"This header also contains a boundary",
                detail=f"{name}: {value}",
            )

        logger.debug(f"Extracting boundary from header [{name}: {sanitize_for_logging(value)}]")
        boundary = _extract_from_value(value)
        declaring_header = (name, value)

    if not boundary:
        rendered = "; ".join(f"{name}: {value}" for name, value in headers)
        raise BoundaryNotFoundError("Unable to find boundary in headers", detail=rendered)

    logger.debug(f"Found boundary [{sanitize_for_logging(boundary)}]")
    return boundary
