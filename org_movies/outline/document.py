from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class OutlineFileError(RuntimeError):
    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except OSError as exc:
        raise OutlineFileError(f"Unable to read {path}: {exc}", path=path) from exc


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutlineFileError(f"Unable to write {path}: {exc}", path=path) from exc


def _separator_for(existing: str) -> str:
    if existing and not existing.endswith("\n"):
        return "\n"
    return ""


def insert_node_at_offset(text: str, offset: int, node: str) -> str:
    """
    Insert `node` into document text at a cursor offset.

    A cursor in the middle of a line inserts at the start of the next line so the
    heading always begins a line.
    """

    if offset < 0 or offset > len(text):
        raise ValueError(f"Cursor offset {offset} is outside the document (0..{len(text)}).")

    if offset > 0 and text[offset - 1] != "\n":
        newline_at = text.find("\n", offset)
        if newline_at == -1:
            return text + "\n" + node
        offset = newline_at + 1
    return text[:offset] + node + text[offset:]


def insert_node_at_cursor(path: str | Path, node: str, offset: int) -> None:
    """Insert `node` into a file at a character offset (see `insert_node_at_offset`)."""

    path = Path(path)
    _write_text(path, insert_node_at_offset(_read_text(path), offset, node))


def insert_node_at_line(path: str | Path, node: str, line: int | None = None) -> None:
    """
    Insert `node` into a file before 1-based `line`, or append when `line` is None
    or past the end. Missing files are created.
    """

    path = Path(path)
    existing = _read_text(path)

    if line is None:
        _write_text(path, existing + _separator_for(existing) + node)
        return
    if line < 1:
        raise ValueError(f"Line number must be >= 1, got {line}.")

    lines = existing.splitlines(keepends=True)
    if line > len(lines):
        _write_text(path, existing + _separator_for(existing) + node)
        return
    offset = sum(len(chunk) for chunk in lines[: line - 1])
    _write_text(path, existing[:offset] + node + existing[offset:])


def append_nodes_to_file(path: str | Path, nodes: Iterable[str]) -> int:
    """Append rendered nodes to a file, returning how many were written."""

    path = Path(path)
    nodes = list(nodes)
    if not nodes:
        return 0

    try:
        needs_newline = path.is_file() and path.stat().st_size > 0 and not _ends_with_newline(path)
        with path.open("a", encoding="utf-8") as f:
            if needs_newline:
                f.write("\n")
            for node in nodes:
                f.write(node)
    except OSError as exc:
        raise OutlineFileError(f"Unable to append to {path}: {exc}", path=path) from exc

    logger.debug("Appended %d node(s) to %s", len(nodes), path)
    return len(nodes)


def _ends_with_newline(path: Path) -> bool:
    with path.open("rb") as f:
        f.seek(-1, 2)
        return f.read(1) == b"\n"
