from __future__ import annotations

import os
from pathlib import Path


def data_dir() -> Path:
    """Local state for the server: ``config.json`` and the ``logs/`` folder.

    ``JOURNAL_DATA_DIR`` wins; otherwise ``./data`` under the working directory.
    """
    env_dir = os.getenv("JOURNAL_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return Path.cwd() / "data"


def logs_dir() -> Path:
    return data_dir() / "logs"


__all__ = ["data_dir", "logs_dir"]
