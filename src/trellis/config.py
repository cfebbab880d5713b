"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(pages_dir="pages", debug=True)
    """

    debug: bool = False

    # Routes
    pages_dir: str | Path | None = None  # Mounted automatically on freeze when set

    # Templates
    template_dir: str | Path | None = None
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Generic responses when the route chain has no matching fallback
    not_found_body: str = "<h1>404: This page could not be found.</h1>"
    error_body: str = "<h1>500: Something went wrong.</h1>"

    # Metadata merged beneath the root of every route chain
    default_metadata: dict[str, Any] = field(default_factory=dict)

    # Logging
    log_level: str = "warning"  # Read by the CLI to configure logging
