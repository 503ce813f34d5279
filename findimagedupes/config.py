"""
Configuration constants for findimagedupes.

This module contains all configurable settings including:
- Default threshold, worker count and output delimiter
- Queue and cancellation tuning for the worker pool
- Process exit codes
"""

import os

# Hamming distance threshold for grouping fingerprints
# 0 = only identical fingerprints are grouped
# Fingerprints are 64-bit, so the useful range is 0-63
DEFAULT_THRESHOLD = 0
MAX_THRESHOLD = 63

# Default number of parallel workers (host parallelism)
DEFAULT_JOBS = os.cpu_count() or 1

# Jobs buffered per worker before the walker blocks (backpressure)
JOB_QUEUE_CAPACITY = 1

# How often blocking operations re-check the cancellation signal (seconds)
CANCEL_POLL_INTERVAL = 0.1

# Directory recursion limits
# -1 = unbounded, 1 = contents of the given directory only
DEPTH_UNBOUNDED = -1
DEPTH_SINGLE_LEVEL = 1

# Default separator between paths of a group on stdout
DEFAULT_DELIMITER = " "

# pHash size; 8 produces a 64-bit fingerprint
FINGERPRINT_HASH_SIZE = 8

# MIME prefix accepted by the workers
IMAGE_MIME_PREFIX = "image/"

# Decompression bomb limit for Pillow (500 megapixels)
MAX_IMAGE_PIXELS = 500_000_000

# Quiet levels
QUIET_NONE = 0      # warnings and errors
QUIET_WARNINGS = 1  # errors only
QUIET_ALL = 2       # silent (fatal messages still shown)

# Process exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
