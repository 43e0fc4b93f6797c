"""
Conversion of raw chart bytes to text, and content hashes.
"""
import codecs
import hashlib
import logging

__all__ = [
    "LEGACY_ENCODINGS",
    "decode_text",
    "compute_hashes",
]

LEGACY_ENCODINGS = ("cp932", "euc_jp")
"""Encodings tried, in order, when the data is not valid UTF-8."""

logger = logging.getLogger(__name__)


def decode_text(raw: bytes, legacy_encodings: tuple[str, ...] = LEGACY_ENCODINGS) -> str:
    """
    Decode chart bytes to text.

    A UTF-8 byte order mark forces UTF-8, with invalid sequences replaced. Otherwise strict UTF-8 is tried, then each
    legacy encoding in turn. If nothing decodes cleanly, the first legacy encoding is used with replacement.

    :param raw: The undecoded file contents.
    :param legacy_encodings: Encodings to try after UTF-8. Must not be empty.
    :returns: The decoded text. This function never fails.
    """
    if raw.startswith(codecs.BOM_UTF8):
        logger.debug("found UTF-8 byte order mark")
        return raw[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")

    for encoding in ("utf-8", *legacy_encodings):
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        logger.debug(f"decoded as {encoding}")
        return text

    logger.warning(f"could not decode cleanly, falling back to lossy {legacy_encodings[0]}")
    return raw.decode(legacy_encodings[0], errors="replace")


def compute_hashes(raw: bytes) -> tuple[str, str]:
    """
    Compute the content identity of a chart.

    :returns: A tuple of the MD5 and SHA-256 hex digests of the raw bytes.
    """
    return hashlib.md5(raw).hexdigest(), hashlib.sha256(raw).hexdigest()
