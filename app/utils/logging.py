"""Logging helpers."""

import logging


def configure_logging(level: str = "INFO") -> None:
    """Configure root logger once."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Gemini requests carry the API key in the query string.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
