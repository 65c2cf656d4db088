"""
Content Hash Utility
====================
Content identity for files the fixer may rewrite.

Rules:
    - Hash the raw bytes, never decoded text (line endings and BOMs count).
    - SHA-256, full hex digest.
    - A missing/unreadable file hashes to "" so before/after comparisons
      still work when the fixer deletes or creates it.
"""
import hashlib
import logging

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


def compute_content_hash(path: str) -> str:
    """
    Return the SHA-256 hex digest of the file at ``path``.

    Returns
    -------
    str
        64-character hex digest, or "" if the file cannot be read.
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK), b""):
                digest.update(chunk)
    except OSError as exc:
        logger.debug("cannot hash %s: %s", path, exc)
        return ""
    return digest.hexdigest()
