import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `filters.*`, `engine.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from records.types import CompanyRecord  # noqa: E402


@pytest.fixture
def make_record():
    """
    Factory for CompanyRecord with only the fields a test cares about.
    """
    counter = {"n": 0}

    def _make(**kwargs) -> CompanyRecord:
        counter["n"] += 1
        kwargs.setdefault("id", f"c-{counter['n']:04d}")
        kwargs.setdefault("name", f"Company {counter['n']:04d}")
        for f in ("technologies", "materials", "service_types"):
            if f in kwargs:
                kwargs[f] = tuple(kwargs[f])
        return CompanyRecord(**kwargs)

    return _make
