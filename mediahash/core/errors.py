"""
Error kinds raised by the hashing pipeline.

Everything derives from MediaHashError so the CLI can catch per-file
failures in one place and carry on with the next file.
"""

from __future__ import annotations


class MediaHashError(Exception):
    """Base class for all per-file hashing failures."""


class DecodeError(MediaHashError):
    """Image source cannot be read or decoded."""


class ResourceError(MediaHashError):
    """A kernel could not allocate its working buffer."""


class InvalidInputError(MediaHashError, ValueError):
    """Degenerate or inconsistent shapes that no explicit policy covers."""


class DimensionMismatchError(InvalidInputError):
    """Matrix operands have incompatible shapes."""


class SourceError(MediaHashError):
    """Video container cannot be opened, demuxed or decoded."""


class ArgumentError(MediaHashError, ValueError):
    """Invalid task parameters (rejected before any file is touched)."""
