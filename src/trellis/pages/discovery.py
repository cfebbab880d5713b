"""Filesystem route discovery for a pages/ directory.

Walks the pages directory tree and turns each directory into a
``RouteDefinition``.  Directory names become pattern segments:

    products/            static segment
    [slug]/              dynamic segment
    [[...slug]]/         optional catch-all
    (marketing)/         group: organises layouts, adds no URL segment

Files inside a directory fill the node's bundle:

    page.py        page(...), optional ``metadata`` or ``generate_metadata(...)``
    layout.py      layout(children, ...), optional ``config`` and ``metadata``
    loading.py     loading()
    error.py       error(error, retry)
    not_found.py   not_found()

Directories starting with ``_`` or ``.`` are skipped.
"""

from __future__ import annotations

import importlib.util
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from trellis.errors import ConfigurationError
from trellis.pages.types import RouteDefinition
from trellis.routing.pattern import parse_segment

logger = logging.getLogger("trellis.pages")

# file name -> (bundle slot, exported callable name)
_HANDLER_FILES = {
    "page.py": ("page", "page"),
    "layout.py": ("layout", "layout"),
    "loading.py": ("loading", "loading"),
    "error.py": ("error", "error"),
    "not_found.py": ("not_found", "not_found"),
}

_MODULE_NAME_RE = re.compile(r"\W")


def discover_routes(pages_dir: str | Path) -> list[RouteDefinition]:
    """Walk a pages directory and discover all route definitions.

    Args:
        pages_dir: Path to the ``pages/`` directory.

    Returns:
        One :class:`RouteDefinition` per directory that contains at least
        one handler file, ordered parents first.

    Raises:
        FileNotFoundError: If *pages_dir* isn't a directory.
        ConfigurationError: For malformed directory names or handler
            files that don't export the expected callable.
    """
    root = Path(pages_dir).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Pages directory not found: {root}")

    definitions: list[RouteDefinition] = []
    _walk_directory(root, root, parts=[], definitions=definitions)
    logger.debug("Discovered %d route definitions under %s", len(definitions), root)
    return definitions


def _walk_directory(
    directory: Path,
    root: Path,
    *,
    parts: list[str],
    definitions: list[RouteDefinition],
) -> None:
    """Recursively walk a directory, collecting definitions."""
    pattern = "/" + "/".join(parts)
    definition = _load_definition(directory, root, pattern)
    if definition is not None:
        definitions.append(definition)

    for item in sorted(directory.iterdir()):
        if not item.is_dir():
            continue
        if item.name.startswith(("_", ".")):
            continue
        # Validates the name; raises ConfigurationError when malformed
        parse_segment(item.name, pattern=f"{pattern.rstrip('/')}/{item.name}")
        _walk_directory(item, root, parts=[*parts, item.name], definitions=definitions)


def _load_definition(directory: Path, root: Path, pattern: str) -> RouteDefinition | None:
    """Build the definition for one directory, or ``None`` if it has no handlers."""
    bundle: dict[str, Any] = {}
    metadata_from: str | None = None

    for file_name, (slot, export) in _HANDLER_FILES.items():
        file = directory / file_name
        if not file.is_file():
            continue
        module = _load_module(file, root)
        handler = getattr(module, export, None)
        if handler is None or not callable(handler):
            msg = f"{file}: expected a callable named {export!r}"
            raise ConfigurationError(msg)
        bundle[slot] = handler

        if slot == "layout":
            config = getattr(module, "config", None)
            if config is not None:
                if not isinstance(config, Mapping):
                    msg = f"{file}: 'config' must be a mapping"
                    raise ConfigurationError(msg)
                bundle["layout_config"] = dict(config)

        if slot in ("page", "layout"):
            metadata = _module_metadata(module, file)
            if metadata is not None:
                if metadata_from is not None:
                    msg = (
                        f"{directory}: metadata is declared in both {metadata_from} "
                        f"and {file_name}. Declare it in one of them."
                    )
                    raise ConfigurationError(msg)
                bundle["metadata"] = metadata
                metadata_from = file_name

    if not bundle:
        return None
    return RouteDefinition(pattern=pattern, source=str(directory), **bundle)


def _module_metadata(module: ModuleType, file: Path) -> Any:
    """Return a module's ``metadata`` mapping or ``generate_metadata`` resolver."""
    static = getattr(module, "metadata", None)
    dynamic = getattr(module, "generate_metadata", None)
    if static is not None and dynamic is not None:
        msg = f"{file}: define either 'metadata' or 'generate_metadata', not both"
        raise ConfigurationError(msg)
    if static is not None and not isinstance(static, Mapping):
        msg = f"{file}: 'metadata' must be a mapping"
        raise ConfigurationError(msg)
    if dynamic is not None and not callable(dynamic):
        msg = f"{file}: 'generate_metadata' must be callable"
        raise ConfigurationError(msg)
    return static if static is not None else dynamic


def _load_module(file: Path, root: Path) -> ModuleType:
    """Execute a handler file as an isolated module."""
    relative = file.relative_to(root).with_suffix("")
    module_name = "_trellis_pages_" + _MODULE_NAME_RE.sub("_", str(relative))
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        msg = f"Cannot load route module {file}"
        raise ConfigurationError(msg)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
