from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


@pytest.fixture
def pd_types():
    """Detector layout mixing PMTs and X-ARAPUCAs, keyed by channel."""
    return {
        0: "pmt_coated",
        1: "xarapuca_vuv",
        2: "pmt_uncoated",
        3: "xarapuca_vis",
        4: "pmt_coated",
        5: "pmt_coated",
    }
