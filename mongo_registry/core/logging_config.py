"""
Logging setup shared by the host app and the registry.
"""
import logging


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the registry's line format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
