"""Logging configuration shared by the API and the Lambda entrypoints."""
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Inside Lambda the runtime has already attached a handler to the root logger,
    which makes basicConfig a no-op, so the level is always set explicitly.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)

    # boto's wire logging drowns out everything else at DEBUG
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.INFO))
