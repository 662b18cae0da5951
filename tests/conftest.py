"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from rpygraph.models import Block

CHARACTERS_RPY = """\
define e = Character("Eileen", color="#c8ffc8")
define m = Character(_("Mira"))
default points = 0
"""

SCRIPT_RPY = """\
label start:
    e "Welcome back."
    $ points += 1
    menu:
        "Go left":
            jump left_path
        "Go right":
            jump right_path
"""

PATHS_RPY = """\
label left_path:
    "The left path is quiet."
    jump ending
label right_path:
    e "Right it is."
label ending:
    e "The end."
    return
"""

SCREENS_RPY = """\
screen hud():
    text "[points]"
"""


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sample_blocks() -> list[Block]:
    """A small four-block story: characters, a menu, two paths, a screen."""
    return [
        Block(id="characters", content=CHARACTERS_RPY, file_path="game/characters.rpy"),
        Block(id="script", content=SCRIPT_RPY, file_path="game/script.rpy", title="Opening"),
        Block(id="paths", content=PATHS_RPY, file_path="game/paths.rpy"),
        Block(id="screens", content=SCREENS_RPY, file_path="game/screens.rpy"),
    ]


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """The sample story written to disk under ``game/``."""
    game = tmp_path / "game"
    game.mkdir()
    (game / "characters.rpy").write_text(CHARACTERS_RPY)
    (game / "script.rpy").write_text(SCRIPT_RPY)
    (game / "paths.rpy").write_text(PATHS_RPY)
    (game / "screens.rpy").write_text(SCREENS_RPY)
    return tmp_path
