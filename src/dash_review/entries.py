"""File entries handed to the archive parser."""
from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Protocol

from .naming import file_name


class ArchiveEntry(Protocol):
    """Minimal interface the parser and media probes need from a file."""

    path: str

    @property
    def name(self) -> str:  # pragma: no cover - protocol
        """Return the final path component."""

    async def read_text(self) -> str:  # pragma: no cover - protocol
        """Return the decoded text content of the file."""

    def media_source(self) -> str | BinaryIO:  # pragma: no cover - protocol
        """Return something PyAV can open for probing or playback."""


@dataclass(frozen=True, slots=True)
class LocalArchiveEntry:
    """Entry backed by a file on disk."""

    path: str
    file: Path = field(compare=False)

    @property
    def name(self) -> str:
        return file_name(self.path)

    async def read_text(self) -> str:
        return await asyncio.to_thread(self.file.read_text, encoding="utf-8")

    def media_source(self) -> str:
        return str(self.file)


@dataclass(frozen=True, slots=True)
class MemoryArchiveEntry:
    """Entry whose content is already held in memory."""

    path: str
    data: bytes = field(default=b"", repr=False)

    @property
    def name(self) -> str:
        return file_name(self.path)

    async def read_text(self) -> str:
        return self.data.decode("utf-8")

    def media_source(self) -> BinaryIO:
        return io.BytesIO(self.data)


def collect_entries(root: Path | str) -> list[LocalArchiveEntry]:
    """Return entries for every file below *root*.

    Paths are expressed relative to the parent of *root* so that a selected
    ``TeslaCam`` folder yields ``TeslaCam/SavedClips/<clip>/<file>`` paths.
    """

    base = Path(root)
    if not base.is_dir():
        raise ValueError(f"Archive root {base} is not a directory")
    anchor = base.parent
    entries = [
        LocalArchiveEntry(path=candidate.relative_to(anchor).as_posix(), file=candidate)
        for candidate in base.rglob("*")
        if candidate.is_file()
    ]
    entries.sort(key=lambda entry: entry.path)
    return entries


__all__ = ["ArchiveEntry", "LocalArchiveEntry", "MemoryArchiveEntry", "collect_entries"]
