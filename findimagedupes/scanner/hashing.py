"""
Hashing module for the scanner package.

Provides the fingerprint oracle (MIME classification and 64-bit perceptual
hashing) and the Hamming distance between fingerprints.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import FINGERPRINT_HASH_SIZE, IMAGE_MIME_PREFIX
from .dependencies import Image, imagehash, magic, _logger


class FingerprintError(Exception):
    """Raised when a file cannot be classified or fingerprinted."""


def hamming_distance(a: int, b: int) -> int:
    """
    Count the differing bits of two fingerprints.

    Examples:
        >>> hamming_distance(0b1010, 0b0110)
        2
        >>> hamming_distance(0, 0xFFFFFFFFFFFFFFFF)
        64
    """
    return bin(a ^ b).count("1")


def is_image_type(mimetype: str) -> bool:
    """True for image/* MIME types."""
    return mimetype.startswith(IMAGE_MIME_PREFIX)


def calculate_perceptual_hash(filepath: str | Path, hash_size: int = FINGERPRINT_HASH_SIZE) -> int:
    """
    Calculate the perceptual hash of an image as an unsigned integer.

    Uses the DCT-based pHash algorithm; hash_size 8 yields 64 bits.

    Args:
        filepath: Path to the image
        hash_size: Size of the hash

    Returns:
        Fingerprint as an unsigned integer (0 if nothing could be derived)

    Raises:
        FingerprintError: if the image cannot be decoded or hashed
    """
    try:
        with Image.open(filepath) as img:
            # Force load to detect truncated/corrupt images early
            img.load()

            # Convert to RGB if necessary (handles transparency, etc.)
            if img.mode not in ('RGB', 'L'):
                img = img.convert('RGB')

            phash = imagehash.phash(img, hash_size=hash_size)
    except Exception as e:
        _logger.debug(f"Perceptual hash calculation failed for {filepath}: {e}")
        raise FingerprintError(str(e)) from e

    return int(str(phash), 16)


class FingerprintOracle:
    """
    Classifies files and computes their fingerprints.

    Each instance owns a private libmagic handle, so an oracle must not be
    shared between threads: every worker creates its own and closes it when
    it exits.
    """

    def __init__(self, hash_size: int = FINGERPRINT_HASH_SIZE):
        """
        Open the libmagic decoder.

        Raises:
            FingerprintError: if libmagic cannot be initialized
        """
        self.hash_size = hash_size
        try:
            self._magic: Optional[magic.Magic] = magic.Magic(mime=True)
        except Exception as e:
            raise FingerprintError(f"cannot initialize libmagic: {e}") from e

    def classify_file(self, path: str | Path) -> str:
        """
        Return the MIME type of a file.

        Raises:
            FingerprintError: if the file cannot be read or classified
        """
        if self._magic is None:
            raise FingerprintError("oracle is closed")
        try:
            return self._magic.from_file(str(path))
        except (OSError, magic.MagicException) as e:
            raise FingerprintError(str(e)) from e

    def compute_fingerprint(self, path: str | Path) -> int:
        """
        Compute the 64-bit perceptual fingerprint of an image.

        Returns:
            Unsigned fingerprint; 0 means no usable fingerprint

        Raises:
            FingerprintError: if the image cannot be decoded
        """
        return calculate_perceptual_hash(path, hash_size=self.hash_size)

    def close(self) -> None:
        """Release the libmagic handle."""
        self._magic = None

    def __enter__(self) -> 'FingerprintOracle':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    'FingerprintError',
    'FingerprintOracle',
    'calculate_perceptual_hash',
    'hamming_distance',
    'is_image_type',
]
