"""Root test configuration: isolate tests from local config.yaml and MDRF_* env vars"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test in an empty directory with no MDRF_ overrides set."""
    for name in list(os.environ):
        if name.startswith("MDRF_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
