import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure root logging for scheduled job output and return the job logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    # urllib3 logs every connection at DEBUG, which drowns the job output
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logging.getLogger("download_stats")
