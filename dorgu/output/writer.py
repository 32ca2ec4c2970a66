"""Output sink: writes generated documents under an output directory."""

import os
from pathlib import Path
from typing import List, Sequence, Union

from dorgu.core.generator import GeneratedDocument
from dorgu.utils.exceptions import OutputError
from dorgu.utils.logger import DorguLogger

writer_logger = DorguLogger("OutputWriter")

DRY_RUN_RULE = "---"


def write_documents(base_dir: Union[str, Path], documents: Sequence[GeneratedDocument]) -> List[Path]:
    """
    Write each document at ``base_dir / document.path``.

    Paths may climb out of ``base_dir`` (``../PERSONA.md`` lands next to
    the manifest directory). Parent directories are created as needed.

    Args:
        base_dir: Manifest output directory
        documents: Documents to write

    Returns:
        Written paths, in document order

    Raises:
        OutputError: a directory or file could not be written
    """
    base = Path(base_dir)
    written: List[Path] = []
    for document in documents:
        target = Path(os.path.normpath(base / document.path))
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(document.content, encoding="utf-8")
        except OSError as e:
            raise OutputError(f"failed to write {target}: {e}", path=str(target))
        written.append(target)
        writer_logger.log_structured(
            level="DEBUG",
            message="Wrote document",
            extra={"path": str(target), "bytes": len(document.content)},
        )
    return written


def render_dry_run(documents: Sequence[GeneratedDocument], base_dir: Union[str, Path] = "") -> str:
    """Render every document under a ``--- <path> ---`` header instead of writing it."""
    blocks = []
    for document in documents:
        path = os.path.normpath(os.path.join(str(base_dir), document.path)) if base_dir else document.path
        blocks.append(f"{DRY_RUN_RULE} {path} {DRY_RUN_RULE}\n{document.content.rstrip()}\n")
    return "\n".join(blocks)
