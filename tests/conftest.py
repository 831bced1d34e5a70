from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.layer_builder import LayerBuilder


@pytest.fixture
def layers(tmp_path: Path) -> LayerBuilder:
    """Provide a stub project rooted at the pytest tmp_path."""
    return LayerBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _restore_shimcheck_logger() -> Iterator[None]:
    """Undo handler/propagation changes made by CLI runs."""
    logger = logging.getLogger("shimcheck")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
