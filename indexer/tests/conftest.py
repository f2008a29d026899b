"""Shared fixtures for indexer tests."""

import os
from typing import Any, Dict, List, Optional

import pytest

from chainhook_indexer.config import Config
from db.models import Base
from db.session import close_db, get_engine, init_db
from payloads import CONTRACT_ID, print_log

# In-memory SQLite unless a real database is supplied
TEST_DB_URL = os.getenv("TEST_DB_URL", "sqlite://")


@pytest.fixture
def test_config():
    """Test configuration."""
    return Config(db_url=TEST_DB_URL)


@pytest.fixture
def db(test_config):
    """Fresh schema for each test."""
    close_db()
    init_db(test_config)
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    close_db()


@pytest.fixture
def make_client(db):
    """Build a TestClient for an app created with config overrides."""
    from fastapi.testclient import TestClient

    from api.app import create_app

    def _make(**overrides):
        config = Config(db_url=TEST_DB_URL, **overrides)
        return TestClient(create_app(config))

    return _make


@pytest.fixture
def make_envelope():
    """Build a chainhook-style delivery wrapping the given print values."""

    def _make(
        values: List[Any],
        txid: str = "0x" + "ab" * 32,
        block_height: int = 150000,
        contract_identifier: Optional[str] = CONTRACT_ID,
        action: str = "apply",
    ) -> Dict[str, Any]:
        return {
            "uuid": "9d1b6a0e-hook",
            "chain": "stacks",
            "network": "mainnet",
            "action": action,
            "apply": [
                {
                    "block_identifier": {"index": block_height, "hash": "0x" + "cd" * 32},
                    "transactions": [
                        {
                            "txid": txid,
                            "events": [print_log(v, contract_identifier) for v in values],
                        }
                    ],
                }
            ],
        }

    return _make
