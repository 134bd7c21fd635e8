"""File-system capability used by parsers and attachment storage."""

import shutil
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Protocol for the file operations the import pipeline needs."""

    def exists(self, path: Path) -> bool:
        """Check if a file exists."""
        ...

    def copy_file(self, src: Path, dst: Path) -> None:
        """Copy a file, failing if the destination exists."""
        ...

    def create_directories(self, path: Path) -> None:
        """Create a directory and any missing parents."""
        ...

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write a new file, failing if it exists."""
        ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def copy_file(self, src: Path, dst: Path) -> None:
        dst = Path(dst)
        if dst.exists():
            raise FileExistsError(dst)
        shutil.copy2(src, dst)

    def create_directories(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: Path, data: bytes) -> None:
        with open(path, "xb") as f:
            f.write(data)


def read_source(path: Path) -> str:
    """Read an import source as UTF-8, falling back to Latin-1."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return Path(path).read_text(encoding="latin-1")
