"""
Filesystem storage rooted at a vault directory.

Documents are addressed by vault-relative POSIX paths ("notes/today.md").
Every read-modify-write holds _lock (threading.RLock) so edits of
different lines of one document never interleave. OSError is reported as
StorageError(path, operation, message); bad line numbers are a
ValidationError.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Callable, Iterator, List, Optional, Set

from task_calendar.errors import StorageError, ValidationError
from task_calendar.parsers.frontmatter import (
    FrontmatterError,
    parse_frontmatter,
    replace_frontmatter,
)
from task_calendar.storage.base import Metadata

log = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = {".git", ".obsidian", "node_modules", ".trash"}
TRASH_DIR = ".trash"
DOCUMENT_SUFFIX = ".md"


@contextmanager
def _storage_errors(doc: str, operation: str) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        raise StorageError(doc, operation, e.strerror or str(e)) from e


class VaultStore:
    """
    Thread-safe document store over a vault directory.

    Lines are split on ``\\n``; a trailing newline shows up as a final
    empty line and is kept as is on write.
    """

    def __init__(self, root: Path, exclude_dirs: Optional[Set[str]] = None) -> None:
        self._root = Path(root)
        self._exclude_dirs = set(DEFAULT_EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs)
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def path_for(self, doc: str) -> Path:
        """
        Resolve a vault-relative document path.

        Raises:
            ValidationError: the path is empty or leaves the vault
        """
        rel = PurePosixPath(doc.replace("\\", "/"))
        if not doc or rel.is_absolute() or ".." in rel.parts:
            raise ValidationError(f"Invalid document path: {doc!r}")
        return self._root.joinpath(*rel.parts)

    def doc_for(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    def exists(self, doc: str) -> bool:
        return self.path_for(doc).is_file()

    # ------------------------------------------------------------------
    # Whole-document text
    # ------------------------------------------------------------------

    def read_text(self, doc: str) -> str:
        path = self.path_for(doc)
        with _storage_errors(doc, "read"):
            return path.read_text(encoding="utf-8")

    def write_text(self, doc: str, text: str) -> None:
        path = self.path_for(doc)
        with self._lock, _storage_errors(doc, "write"):
            path.write_text(text, encoding="utf-8")
        log.debug("Wrote %s (%d chars)", doc, len(text))

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def read_lines(self, doc: str) -> List[str]:
        return self.read_text(doc).split("\n")

    def _check_line(self, doc: str, lines: List[str], n: int) -> None:
        if n < 0 or n >= len(lines):
            raise ValidationError(f"Invalid line number {n} for {doc} ({len(lines)} lines)")

    def read_line(self, doc: str, n: int) -> str:
        lines = self.read_lines(doc)
        self._check_line(doc, lines, n)
        return lines[n]

    def write_line_if_changed(self, doc: str, n: int, new_text: str) -> bool:
        """Replace line ``n``; returns False (and writes nothing) when it is unchanged."""
        with self._lock:
            lines = self.read_lines(doc)
            self._check_line(doc, lines, n)
            if lines[n] == new_text:
                return False
            lines[n] = new_text
            self.write_text(doc, "\n".join(lines))
            log.debug("Updated %s line %d", doc, n)
            return True

    def append_line(self, doc: str, text: str) -> None:
        """Append ``text`` as a new line, creating the document and its folders if needed."""
        with self._lock:
            if not self.exists(doc):
                self.create_document(doc, "")
            content = self.read_text(doc)
            if content and not content.endswith("\n"):
                content += "\n"
            self.write_text(doc, f"{content}{text}\n")
            log.debug("Appended to %s", doc)

    def insert_line_after(self, doc: str, n: int, text: str) -> None:
        with self._lock:
            lines = self.read_lines(doc)
            self._check_line(doc, lines, n)
            lines.insert(n + 1, text)
            self.write_text(doc, "\n".join(lines))
            log.debug("Inserted line after %s line %d", doc, n)

    def remove_line(self, doc: str, n: int) -> None:
        with self._lock:
            lines = self.read_lines(doc)
            self._check_line(doc, lines, n)
            del lines[n]
            self.write_text(doc, "\n".join(lines))
            log.debug("Removed %s line %d", doc, n)

    # ------------------------------------------------------------------
    # Metadata block
    # ------------------------------------------------------------------

    def read_metadata(self, doc: str) -> Metadata:
        """
        Raises:
            FrontmatterError: the document's metadata block is malformed
        """
        return parse_frontmatter(self.read_text(doc))

    @contextmanager
    def metadata(self, doc: str) -> Iterator[Metadata]:
        """
        Lock a document's metadata for mutation.

        The yielded dict is written back on a clean exit if it changed; an
        exception inside the block discards the changes.
        """
        with self._lock:
            text = self.read_text(doc)
            original = parse_frontmatter(text)
            data = dict(original)
            yield data
            if data != original:
                self.write_text(doc, replace_frontmatter(text, data))
                log.debug("Updated metadata of %s", doc)

    def write_metadata(self, doc: str, mutator: Callable[[Metadata], None]) -> bool:
        """Apply ``mutator`` to the metadata of ``doc``; returns whether anything changed."""
        with self._lock:
            before = self.read_metadata(doc)
            with self.metadata(doc) as data:
                mutator(data)
            return data != before

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def _walk_documents(self) -> Iterator[Path]:
        for path in sorted(self._root.rglob(f"*{DOCUMENT_SUFFIX}")):
            rel = path.relative_to(self._root)
            if any(part in self._exclude_dirs for part in rel.parts[:-1]):
                continue
            if path.is_file():
                yield path

    def find_documents(self, predicate: Callable[[Metadata], bool]) -> List[str]:
        """Return every document whose metadata satisfies ``predicate``, sorted by path."""
        found = []
        for path in self._walk_documents():
            doc = self.doc_for(path)
            try:
                metadata = self.read_metadata(doc)
            except (FrontmatterError, StorageError):
                log.warning("Skipping unreadable document %s", doc, exc_info=True)
                continue
            if predicate(metadata):
                found.append(doc)
        return found

    def ensure_directory(self, path: str) -> None:
        target = self._root if path in ("", ".") else self.path_for(path)
        with _storage_errors(path, "create directory"):
            target.mkdir(parents=True, exist_ok=True)

    def create_document(self, doc: str, text: str = "") -> str:
        """
        Create a new document (and its folders).

        Raises:
            StorageError: the document already exists or cannot be written
        """
        path = self.path_for(doc)
        with self._lock:
            parent = str(PurePosixPath(doc.replace("\\", "/")).parent)
            self.ensure_directory(parent)
            with _storage_errors(doc, "create"):
                with path.open("x", encoding="utf-8") as f:
                    f.write(text)
        log.debug("Created %s", doc)
        return self.doc_for(path)

    def rename_document(self, doc: str, new_base_name: str) -> str:
        """
        Rename a document within its folder, keeping the extension.

        Returns the new document path (``doc`` itself when the name is
        unchanged).

        Raises:
            StorageError: the target exists or the rename fails
        """
        path = self.path_for(doc)
        target = path.with_name(f"{new_base_name}{path.suffix}")
        if target == path:
            return doc
        with self._lock:
            if target.exists():
                raise StorageError(doc, "rename", f"{self.doc_for(target)} already exists")
            with _storage_errors(doc, "rename"):
                path.rename(target)
        new_doc = self.doc_for(target)
        log.debug("Renamed %s -> %s", doc, new_doc)
        return new_doc

    def trash_document(self, doc: str) -> str:
        """Move a document into the vault's .trash folder; returns its new path."""
        path = self.path_for(doc)
        with self._lock:
            trash = self._root / TRASH_DIR
            with _storage_errors(doc, "trash"):
                trash.mkdir(parents=True, exist_ok=True)
                target = trash / path.name
                counter = 1
                while target.exists():
                    target = trash / f"{path.stem} {counter}{path.suffix}"
                    counter += 1
                path.rename(target)
        new_doc = self.doc_for(target)
        log.debug("Trashed %s -> %s", doc, new_doc)
        return new_doc
