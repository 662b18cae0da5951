"""Load script files from disk as analysis blocks.

The engine never touches the filesystem; this is the CLI's adapter.
Each ``.rpy`` file becomes one block whose id and file path are its
POSIX path relative to the project root, so ``game/characters.rpy``
matches the default special story paths.
"""

from __future__ import annotations

from pathlib import Path

from rpygraph.models import Block
from rpygraph.observability.logging import get_logger

log = get_logger(__name__)

SCRIPT_SUFFIX = ".rpy"


def find_scripts(root: Path) -> list[Path]:
    """Every ``.rpy`` file under ``root``, sorted by relative path."""
    return sorted(p for p in root.rglob(f"*{SCRIPT_SUFFIX}") if p.is_file())


def load_blocks(path: Path) -> tuple[Path, list[Block]]:
    """Read a script file or a directory of scripts.

    Args:
        path: A single ``.rpy`` file or a project directory.

    Returns:
        Tuple of (project root, blocks in path order).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    if not path.exists():
        msg = f"No such file or directory: {path}"
        raise FileNotFoundError(msg)

    if path.is_file():
        root = path.parent
        files = [path]
    else:
        root = path
        files = find_scripts(path)

    blocks: list[Block] = []
    for file in files:
        relative = file.relative_to(root).as_posix()
        # Editors save with either newline style; line numbers follow "\n".
        content = file.read_text(encoding="utf-8-sig").replace("\r\n", "\n")
        blocks.append(Block(id=relative, content=content, file_path=relative, title=file.name))

    log.info("blocks_loaded", root=str(root), blocks=len(blocks))
    return root, blocks
