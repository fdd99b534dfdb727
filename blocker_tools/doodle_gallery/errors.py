"""Exceptions raised by the gallery engine."""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for gallery errors."""


class GalleryValidationError(GalleryError):
    """A command was rejected before any state was touched.

    The message is user-facing; the dispatcher shows it as an alert.
    """
