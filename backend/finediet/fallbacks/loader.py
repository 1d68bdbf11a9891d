"""Bundled JSON documents served when the database has nothing usable."""

import copy
import json
from functools import lru_cache
from pathlib import Path

FALLBACK_DIR = Path(__file__).resolve().parent


@lru_cache
def _read(name: str):
    with open(FALLBACK_DIR / name, encoding="utf-8") as f:
        return json.load(f)


def load_fallback(name: str):
    """Return a fresh copy so callers may mutate the result."""
    return copy.deepcopy(_read(name))
