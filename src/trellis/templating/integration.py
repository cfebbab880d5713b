"""Kida environment setup and output rendering.

Creates a kida Environment from trellis's AppConfig. The environment is
created once during ``App._freeze()`` and passed to every render.
"""

from __future__ import annotations

from typing import Any

from kida import Environment, FileSystemLoader

from trellis.config import AppConfig
from trellis.templating.returns import InlineTemplate, Template


def create_environment(config: AppConfig) -> Environment:
    """Create a kida Environment from app configuration.

    Without a ``template_dir`` the environment has no loader and can
    only render inline templates.
    """
    options: dict[str, Any] = {
        "autoescape": config.autoescape,
        "auto_reload": config.debug,
        "trim_blocks": config.trim_blocks,
        "lstrip_blocks": config.lstrip_blocks,
    }
    if config.template_dir:
        options["loader"] = FileSystemLoader(str(config.template_dir))
    return Environment(**options)


def render_output(value: Any, env: Environment | None) -> str:
    """Turn a handler's return value into HTML.

    ``str`` passes through, ``None`` renders as empty, template returns
    are rendered with *env*.  Anything else is converted with ``str()``.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return str(value)
    if isinstance(value, Template):
        if env is None:
            msg = f"Cannot render template {value.name!r}: no template environment configured"
            raise RuntimeError(msg)
        return env.get_template(value.name).render(value.context)
    if isinstance(value, InlineTemplate):
        return (env or Environment()).from_string(value.source).render(value.context)
    return str(value)
