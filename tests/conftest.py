from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.story_builder import StoryBuilder


@pytest.fixture
def story_builder(tmp_path: Path) -> StoryBuilder:
    """Provide a story builder rooted at the pytest tmp_path."""
    return StoryBuilder(tmp_path)
