"""Render lifecycle — supervised page rendering with loading and error fallbacks."""

from trellis.rendering.lifecycle import (
    Errored,
    ErrorReporter,
    Pending,
    Ready,
    RenderAttempt,
    RenderController,
    RenderFrame,
    RenderState,
    Retry,
)

__all__ = [
    "ErrorReporter",
    "Errored",
    "Pending",
    "Ready",
    "RenderAttempt",
    "RenderController",
    "RenderFrame",
    "RenderState",
    "Retry",
]
