"""
Locating and reading SKILL documents inside zip archives.
"""

import logging
import zipfile
import zlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from io import BytesIO

logger = logging.getLogger(__name__)

# Root-level candidates, in order of preference.
ROOT_DOCUMENT_NAMES = ("SKILL.md", "skill.md", "README.md")
NESTED_DOCUMENT_SUFFIX = "/skill.md"

CORRUPT_ARCHIVE_MESSAGE = "Archive could not be opened. Re-export the skill and upload it again."

type ContentAccessor = Callable[[], bytes]


class InvalidArchiveError(ValueError):
    """Raised when uploaded bytes cannot be opened as a zip archive at all."""


@dataclass(frozen=True)
class LocatedDocument:
    path: str
    content: bytes

    @property
    def directory(self) -> str:
        """Directory prefix of the document inside the archive ('' at the root)."""
        if "/" not in self.path:
            return ""
        return self.path.rsplit("/", 1)[0] + "/"

    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class DocumentNotFound:
    resource_count: int

    @property
    def message(self) -> str:
        return f"No SKILL.md found in archive ({self.resource_count} files)"


def _is_nested_document(path: str) -> bool:
    lowered = path.lower()
    return lowered == "skill.md" or lowered.endswith(NESTED_DOCUMENT_SUFFIX)


def locate_skill_document(entries: Mapping[str, ContentAccessor]) -> LocatedDocument | DocumentNotFound:
    """
    Find the SKILL document among an archive's entries.

    Root-level SKILL.md, skill.md and README.md are tried in that order; after
    that the first path (in the archive's own order) whose lowercase form ends
    in '/skill.md' wins.

    Args:
        entries: Mapping of archive path to a callable returning the entry's bytes

    Returns:
        The located document, or DocumentNotFound carrying the entry count
    """
    for name in ROOT_DOCUMENT_NAMES:
        if name in entries:
            return LocatedDocument(path=name, content=entries[name]())

    for path, accessor in entries.items():
        if _is_nested_document(path):
            logger.debug(f"Found skill document in subdirectory: {path}")
            return LocatedDocument(path=path, content=accessor())

    logger.warning(f"No skill document found among {len(entries)} archive entries")
    return DocumentNotFound(resource_count=len(entries))


class SkillArchive:
    """Read-only view over a zip archive's file entries."""

    def __init__(self, data: bytes):
        try:
            self._zip = zipfile.ZipFile(BytesIO(data))
            self._infos = [info for info in self._zip.infolist() if not info.is_dir()]
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as e:
            logger.warning(f"Could not open archive: {e}")
            raise InvalidArchiveError(f"Archive could not be opened: {e}") from e

    def __enter__(self) -> "SkillArchive":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    @property
    def paths(self) -> list[str]:
        return [info.filename for info in self._infos]

    def size(self, path: str) -> int:
        """Uncompressed size recorded in the entry header, known without reading the entry."""
        return self._zip.getinfo(path).file_size

    def read(self, path: str, limit: int | None = None) -> bytes:
        """
        Read an entry's bytes.

        With ``limit`` at most ``limit + 1`` bytes are decompressed, enough
        for callers to tell an entry is larger than the limit whatever its
        header claims.

        Raises:
            InvalidArchiveError: If the entry is corrupt, encrypted or uses
                an unsupported compression method
        """
        try:
            if limit is None:
                return self._zip.read(path)
            with self._zip.open(path) as entry:
                return entry.read(limit + 1)
        except (zipfile.BadZipFile, zlib.error, OSError, EOFError, RuntimeError) as e:
            logger.warning(f"Could not read archive entry {path}: {e}")
            raise InvalidArchiveError(f"Archive entry {path} could not be read: {e}") from e

    def read_text(self, path: str) -> str:
        return self.read(path).decode("utf-8", errors="replace")

    def entries(self) -> dict[str, ContentAccessor]:
        """Entries in archive order, each read lazily."""
        return {path: (lambda path=path: self.read(path)) for path in self.paths}

    def locate(self) -> LocatedDocument | DocumentNotFound:
        return locate_skill_document(self.entries())
