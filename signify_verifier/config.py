"""
Configuration module for the signify verifier.

Centralizes the command line tool's settings with environment variable
support. The library itself takes everything as arguments.
"""

import os
from pathlib import Path
from typing import Optional, Union

from .errors import IOFailureError

# ============================================================
# Environment Configuration
# ============================================================

# Logging
LOG_LEVEL = os.getenv("SIGNIFY_LOG_LEVEL", "WARNING")
LOG_FORMAT = os.getenv("SIGNIFY_LOG_FORMAT", "text")  # text|json
LOG_FILE = os.getenv("SIGNIFY_LOG_FILE") or None

# Default trusted key for the CLI
PUBLIC_KEY_PATH = os.getenv("SIGNIFY_PUBLIC_KEY_PATH") or None

# Fixed comparison date (YYYY-MM-DD) for chained signature expiry
NOW_OVERRIDE = os.getenv("SIGNIFY_NOW") or None


# ============================================================
# Loaders
# ============================================================

def load_public_key(path: Union[str, Path]) -> bytes:
    """
    Read a signify public key file.

    Raises:
        IOFailureError: If the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise IOFailureError(
            f'The public key file at "{path}" could not be read.',
            {"path": str(path)}
        ) from e


def resolve_public_key_path(path: Optional[str]) -> Optional[str]:
    """Explicit path, else SIGNIFY_PUBLIC_KEY_PATH."""
    return path or PUBLIC_KEY_PATH


# ============================================================
# Feature Flags
# ============================================================

def use_json_logs() -> bool:
    return LOG_FORMAT.lower() == "json"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("SIGNIFY_DEBUG", "").lower() in ("1", "true", "yes")
