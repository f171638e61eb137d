#!/usr/bin/env python3
"""Constants for the on-disk history registry.

These constants control where the registry lives inside the data directory
and how failed writes are retried before giving up.
"""

# Name of the JSON snapshot file inside the data directory.
REGISTRY_FILENAME: str = "registry.json"

# Subdirectory of the data directory holding binary payload files.
PAYLOAD_DIRNAME: str = "payloads"

# Retry parameters for exponential backoff on failed writes.
# Number of attempts before a write is reported as failed.
WRITE_ATTEMPTS: int = 3

# Initial delay between write attempts in seconds.
INITIAL_WAIT: float = 0.05

# Maximum delay between write attempts in seconds.
MAX_WAIT: float = 0.5

# Multiplier for exponential backoff (delay = initial * multiplier^attempt).
WAIT_MULTIPLIER: float = 2.0
