"""
Shared test configuration.

Points LIFELINE_DB_PATH at a temporary file for the whole test session so
API tests never write snapshots into the project directory.
"""

import os

import pytest


@pytest.fixture(autouse=True, scope="session")
def _isolate_db(tmp_path_factory):
    """Use a temp DB path for all tests to avoid polluting the project dir."""
    tmp_dir = tmp_path_factory.mktemp("lifeline_test_data")
    db_path = str(tmp_dir / "test_lifeline.db")
    os.environ["LIFELINE_DB_PATH"] = db_path
    yield
    os.environ.pop("LIFELINE_DB_PATH", None)
