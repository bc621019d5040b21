import hashlib
import logging

import pytest

from mmr.config import get_config


def _leaf(i: int) -> bytes:
    return hashlib.sha256(b"leaf:%d" % i).digest()


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """
    Drop cached configuration around every test and keep MMR_* variables from
    the outer environment out of it.
    """
    import os

    for key in list(os.environ):
        if key.startswith("MMR_"):
            monkeypatch.delenv(key, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI entry points install handlers on the root logger; undo that."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def leaf_hashes():
    """Factory: leaf_hashes(n) -> n distinct 32-byte hashes."""
    return lambda n: [_leaf(i) for i in range(n)]
