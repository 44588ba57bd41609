"""Pytest configuration.

The application code lives in the top-level `attachment_stripper/` package.
Depending on how pytest is invoked and the active import mode, the
repository root may not be on `sys.path`, which breaks imports like
`from attachment_stripper.modules...` when the project is not installed.
"""

from __future__ import annotations

import sys
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]

# NOTE: Insert at the front so the working tree wins over an installed copy.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
