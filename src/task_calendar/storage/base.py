"""
Storage collaborator interface.

The core never performs I/O. Everything it needs from the outside world
is listed here; VaultStore is the filesystem implementation.
"""

from typing import Any, Callable, ContextManager, Dict, List, Protocol

Metadata = Dict[str, Any]


class Storage(Protocol):
    # Lines
    def read_text(self, doc: str) -> str: ...
    def read_line(self, doc: str, n: int) -> str: ...
    def read_lines(self, doc: str) -> List[str]: ...
    def write_line_if_changed(self, doc: str, n: int, new_text: str) -> bool: ...
    def append_line(self, doc: str, text: str) -> None: ...
    def insert_line_after(self, doc: str, n: int, text: str) -> None: ...
    def remove_line(self, doc: str, n: int) -> None: ...

    # Metadata block
    def read_metadata(self, doc: str) -> Metadata: ...
    def metadata(self, doc: str) -> ContextManager[Metadata]: ...
    def write_metadata(self, doc: str, mutator: Callable[[Metadata], None]) -> bool: ...

    # Documents
    def exists(self, doc: str) -> bool: ...
    def find_documents(self, predicate: Callable[[Metadata], bool]) -> List[str]: ...
    def create_document(self, doc: str, text: str = "") -> str: ...
    def rename_document(self, doc: str, new_base_name: str) -> str: ...
    def trash_document(self, doc: str) -> str: ...
    def ensure_directory(self, path: str) -> None: ...
