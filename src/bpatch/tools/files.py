"""Small file access helpers used by the patch steps."""

from __future__ import annotations

from pathlib import Path

from .errors import DocumentNotFoundError

BYTE_ORDER_MARK = "\ufeff"


def exists(path: Path | str) -> bool:
    """Return ``True`` when ``path`` points at an existing file."""

    return Path(path).is_file()


def read_text(path: Path | str) -> str:
    """Return the UTF-8 content of ``path``.

    Line endings are returned untranslated and a leading byte order mark is
    kept as ``BYTE_ORDER_MARK``, so writing the text back reproduces both.
    """

    target = Path(path)
    if not target.is_file():
        raise DocumentNotFoundError(
            f"Build descriptor not found: {target}",
            details={"path": target.as_posix()},
        )
    with target.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def write_text(path: Path | str, text: str) -> None:
    """Write ``text`` to ``path`` as UTF-8 without newline translation, creating parent directories."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8", newline="")


__all__ = ["BYTE_ORDER_MARK", "exists", "read_text", "write_text"]
