# satmap/errors.py
"""
Exception taxonomy.

Only precondition failures are raised: per-step propagation problems are logged and
absorbed by the engine.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class SatmapError(Exception):
    """Base class for all errors raised by satmap."""


class InvalidOrbitParametersError(SatmapError, ValueError):
    """
    Beacon orbit parameters failed validation, or the encoded element lines came out
    malformed. `context` carries the computed intermediate values.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.context:
            return base
        details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{base} ({details})"


class ElementParseError(SatmapError, ValueError):
    """Two-line elements could not be turned into an SGP4 record."""

    def __init__(self, name: str, message: str, code: Optional[int] = None):
        super().__init__(f"{name}: {message}" + (f" (SGP4 code {code})" if code is not None else ""))
        self.name = name
        self.code = code


class SimulationError(SatmapError, RuntimeError):
    """Unrecoverable run precondition failure (no Beacon, no Iridium constellation)."""
