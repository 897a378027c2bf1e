"""
sleuth_sample.tracing.errors

Exceptions raised by the tracing core.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sleuth_sample.tracing.context import TraceContext


class TracingError(Exception):
    pass


class AlreadyInstalledError(TracingError):
    """
    A second context was installed into a unit of work that already has one.

    This is a bracketing bug (a prior exit path skipped `clear()`), never a
    runtime condition to retry.
    """

    def __init__(self, installed: TraceContext) -> None:
        super().__init__(f"trace context already installed: {installed.format()}")
        self.installed = installed
