"""Translation between resource identifiers and lock file names.

Identifiers are path-like ("Infrastructure/app/db") and must never be
able to escape the lock directory, so every codec removes the path
separator before the name reaches the filesystem. ``decode`` must invert
``encode`` exactly: list_locks() reports identifiers recovered from the
file names alone.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol
from urllib.parse import unquote

from ci_locks.core.constants import (
    DEFAULT_NAMING,
    LEGACY_SEPARATOR_SUBSTITUTE,
    LOCK_FILE_SUFFIX,
    NAMING_ENV,
    NAMING_LEGACY,
    NAMING_PERCENT,
)
from ci_locks.core.exceptions import LockNameError


class LockNameCodec(Protocol):
    """Codec abstraction for lock file naming."""

    name: str

    def encode(self, resource_id: str) -> str:
        """Return the lock file name (suffix included) for an identifier."""

    def decode(self, file_name: str) -> str:
        """Return the identifier a lock file name was produced from."""

    def is_lock_file(self, file_name: str) -> bool:
        """Whether a directory entry looks like a lock file."""


class _SuffixedCodec:
    suffix = LOCK_FILE_SUFFIX
    name = ""

    def is_lock_file(self, file_name: str) -> bool:
        return file_name.endswith(self.suffix) and len(file_name) > len(self.suffix)

    def _check_id(self, resource_id: str) -> None:
        if not isinstance(resource_id, str) or not resource_id:
            raise LockNameError("Resource id must be a non-empty string", value=repr(resource_id), codec=self.name)

    def _strip_suffix(self, file_name: str) -> str:
        if not self.is_lock_file(file_name):
            raise LockNameError(
                f"Not a lock file name (expected '*{self.suffix}')",
                value=file_name,
                codec=self.name,
            )
        return file_name[: -len(self.suffix)]


class PercentLockNameCodec(_SuffixedCodec):
    """Percent-escapes only the characters a file name cannot carry as is.

    "%" becomes "%25", "/" becomes "%2F", "\\" becomes "%5C" and NUL
    becomes "%00". Everything else, non-ASCII text included, is kept
    verbatim so names stay within NAME_MAX for ordinary identifiers.
    ``decode`` only accepts names in exactly the form ``encode`` emits.
    """

    name = NAMING_PERCENT
    escapes = {ord(char): f"%{ord(char):02X}" for char in "%/\\\x00"}

    def encode(self, resource_id: str) -> str:
        self._check_id(resource_id)
        try:
            resource_id.encode("utf-8")
        except UnicodeEncodeError as e:
            raise LockNameError("Resource id is not encodable", value=repr(resource_id), codec=self.name) from e
        return resource_id.translate(self.escapes) + self.suffix

    def decode(self, file_name: str) -> str:
        stem = self._strip_suffix(file_name)
        try:
            resource_id = unquote(stem, errors="strict")
        except UnicodeDecodeError as e:
            raise LockNameError(
                "Lock file name is not valid percent-encoded UTF-8", value=file_name, codec=self.name
            ) from e
        if not resource_id or self.encode(resource_id) != file_name:
            raise LockNameError("Lock file name is not in canonical form", value=file_name, codec=self.name)
        return resource_id


class LegacyLockNameCodec(_SuffixedCodec):
    """Historical scheme: "/" is replaced by "$".

    The mapping is only reversible while identifiers never contain "$".
    Such identifiers are rejected instead of producing a name that would
    decode to a different resource.
    """

    name = NAMING_LEGACY
    substitute = LEGACY_SEPARATOR_SUBSTITUTE

    def encode(self, resource_id: str) -> str:
        self._check_id(resource_id)
        if self.substitute in resource_id:
            raise LockNameError(
                f"Resource id contains the reserved character '{self.substitute}'",
                value=resource_id,
                codec=self.name,
                details="use the percent naming scheme for such identifiers",
            )
        if "\x00" in resource_id or (os.altsep and os.altsep in resource_id):
            raise LockNameError(
                "Resource id contains a character unusable in file names",
                value=repr(resource_id),
                codec=self.name,
            )
        return resource_id.replace("/", self.substitute) + self.suffix

    def decode(self, file_name: str) -> str:
        return self._strip_suffix(file_name).replace(self.substitute, "/")


_CODECS: dict[str, type[_SuffixedCodec]] = {
    NAMING_PERCENT: PercentLockNameCodec,
    NAMING_LEGACY: LegacyLockNameCodec,
}


def create_name_codec(
    codec_name: str | None = None,
    *,
    logger: logging.Logger | None = None,
) -> LockNameCodec:
    """Create a naming codec from an explicit value or environment override."""
    log = logger or logging.getLogger(__name__)
    requested = (codec_name or os.environ.get(NAMING_ENV, DEFAULT_NAMING)).strip().lower()

    codec_cls = _CODECS.get(requested)
    if codec_cls is None:
        log.warning("Unknown lock naming scheme '%s'; falling back to '%s'", requested, DEFAULT_NAMING)
        codec_cls = _CODECS[DEFAULT_NAMING]
    return codec_cls()
