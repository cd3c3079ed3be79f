"""Reads a DEX image fully into memory."""

import logging

logger = logging.getLogger(__name__)


def read_dex_file(filepath: str) -> bytes:
    with open(filepath, 'rb') as f:
        data = f.read()
    logger.debug("Loaded %s (%d bytes)", filepath, len(data))
    return data
