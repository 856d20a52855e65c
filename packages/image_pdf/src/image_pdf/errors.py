"""
Error taxonomy for the image to PDF conversion pipeline.

Recovered failures (probe, compression, placement) are raised by the
component that detects them and handled by its direct caller. Fatal
failures propagate to the batch driver, which only aborts the affected group.
"""


class ImagePdfError(Exception):
    """Base class for all conversion errors."""


class ConfigurationError(ImagePdfError):
    """Invalid run configuration. Aborts the whole run."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class UnknownPageFormat(ImagePdfError):
    """Page size name not present in the page format table."""

    def __init__(self, name: str):
        super().__init__(f"Unsupported page format: {name}")
        self.name = name


class DimensionProbeFailure(ImagePdfError):
    """Image header could not be read to get its pixel size."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(f"Could not read image dimensions for {path}: {reason}")
        self.path = path


class CompressionFailure(ImagePdfError):
    """Re-encoding an image into the scratch directory failed."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(f"Image compression failed for {path}: {reason}")
        self.path = path


class ImagePlacementFailure(ImagePdfError):
    """The PDF library refused to embed an image on its page."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(f"Could not place image {path}: {reason}")
        self.path = path


class DocumentWriteError(ImagePdfError):
    """The output PDF could not be created or finalized."""

    def __init__(self, path: str, reason: str = ""):
        super().__init__(f"Failed to write PDF {path}: {reason}")
        self.path = path
