"""Exception types raised by the terrain pipeline.

Configuration problems are reported before any buffer is allocated.
Cancellation is a separate outcome and does **not** derive from
:class:`TerrainError`.
"""

from __future__ import annotations


class TerrainError(Exception):
    """Base class for every failure raised by :mod:`terracegen`."""


class ConfigurationError(TerrainError, ValueError):
    """An option is out of range or inconsistent with another option."""


class UnsupportedShapeError(TerrainError, NotImplementedError):
    """The requested base shape has no generator (e.g. a polygon with > 10 sides)."""


class InvariantViolation(TerrainError, RuntimeError):
    """Internal defect: an impossible state was reached.

    Never caught inside the package.  Seeing one means the slicing or
    baking logic is wrong for the given input.
    """


class InvalidStateError(InvariantViolation):
    """An object was used out of order (e.g. modified after baking)."""


class GenerationCancelled(Exception):
    """A generation run was cancelled before it produced a mesh."""
