"""
Unique Names
============
Random hex filenames that do not clash with anything already in the
target directory.

generate_unique_name() only checks for existence, so another writer may
take the name before the caller creates the file. reserve_unique_name()
closes that gap by creating an empty placeholder with exclusive-create
semantics; the caller then overwrites it.
"""

from __future__ import annotations

import logging
import os
import uuid

from .errors import NameGenerationExhausted

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100


def _normalize_extension(extension: str) -> str:
    if extension and not extension.startswith("."):
        return "." + extension
    return extension


def _candidate(extension: str) -> str:
    return uuid.uuid4().hex + extension


def generate_unique_name(
    extension: str,
    directory: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Return a filename (not a path) that does not exist in directory.

    Raises:
        NameGenerationExhausted: If every attempt collided.
    """
    extension = _normalize_extension(extension)

    for attempt in range(1, max_attempts + 1):
        name = _candidate(extension)
        if not os.path.exists(os.path.join(directory, name)):
            return name
        logger.debug(f"Name collision in {directory}: {name} (attempt {attempt})")

    raise NameGenerationExhausted(directory, extension, max_attempts)


def reserve_unique_name(
    extension: str,
    directory: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Like generate_unique_name(), but atomically creates an empty file
    under the returned name so no concurrent run can claim it.
    """
    extension = _normalize_extension(extension)

    for attempt in range(1, max_attempts + 1):
        name = _candidate(extension)
        try:
            with open(os.path.join(directory, name), "xb"):
                pass
        except FileExistsError:
            logger.debug(f"Name collision in {directory}: {name} (attempt {attempt})")
            continue
        return name

    raise NameGenerationExhausted(directory, extension, max_attempts)


def unique_path(
    extension: str,
    directory: str,
    exclusive: bool = True,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Full path for a new file in directory, reserved when exclusive."""
    pick = reserve_unique_name if exclusive else generate_unique_name
    return os.path.join(directory, pick(extension, directory, max_attempts))
