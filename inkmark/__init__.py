"""
Inkmark: durable text annotations for re-renderable documents.
"""
import logging

__version__ = "0.1.0"


def configure_logging(level: int = logging.INFO) -> None:
    """Set up console logging for the application entry point."""
    logging.basicConfig(level=level, format="%(name)s: %(message)s")
    # PyMuPDF and Qt plugin chatter
    logging.getLogger("fitz").setLevel(logging.WARNING)


__all__ = ["configure_logging", "__version__"]
