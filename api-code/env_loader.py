from __future__ import annotations

import logging
import os
from pathlib import Path


logger = logging.getLogger("deploy-bot.env")


def load_local_env(env_path: Path | str = Path(".env")) -> int:
    """Export key=value pairs from a local .env file.

    Variables already present in the process environment are left untouched,
    so values injected by the hosting platform win over the file. Returns the
    number of variables that were set.
    """
    path = Path(env_path)
    if not path.is_file():
        return 0

    loaded = 0
    for number, raw_line in enumerate(path.read_text().splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            logger.warning("Skipping malformed .env line %d in %s", number, path)
            continue

        name = key.strip()
        if name in os.environ:
            continue
        os.environ[name] = value.strip().strip('"').strip("'")
        loaded += 1
    return loaded
