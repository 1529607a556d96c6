"""Exception types raised across colorwalk."""


class ColorwalkError(Exception):
    """Base class for all colorwalk errors."""


class InvalidQueryError(ColorwalkError):
    """A search request is malformed (no image, bad threshold or limit)."""


class NoUsableSignalError(ColorwalkError):
    """Neither color nor text features could be extracted for a query."""

    def __init__(self, message: str = "Could not extract features from this image."):
        super().__init__(message)


class ImageLoadError(ColorwalkError):
    """An image reference could not be fetched or decoded."""


class PaletteExtractionError(ColorwalkError):
    """Dominant colors could not be extracted from an image."""


class EmbeddingError(ColorwalkError):
    """The embedding provider failed to produce a vector."""


class PlaceNotFoundError(ColorwalkError):
    """No place exists for the given id."""
