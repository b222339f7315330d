import logging


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries only command output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
