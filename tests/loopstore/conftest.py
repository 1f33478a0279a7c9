"""Fixtures for isolated record store tests.

Provides reusable fixtures for all loopstore test modules, including
a fresh temp-file SQLite RecordStore for each test.
"""
import os
import shutil
import tempfile
from datetime import date

import pytest

from loopstore import RecordStore
from loopstore.base_crud import TableCRUD
from loopstore.models import Plan


@pytest.fixture
def temp_store():
    """Yield a fresh, unseeded RecordStore bound to a temp SQLite database."""
    temp_dir = tempfile.mkdtemp(prefix="loopstore-tests-")
    db_path = os.path.join(temp_dir, "test.db")
    store = RecordStore(database_url=f"sqlite:///{db_path}")
    store.create_tables()

    try:
        yield store
    finally:
        store.close()
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def seeded_store(temp_store):
    """Yield a RecordStore populated with the default seed data."""
    temp_store.seed()
    return temp_store


@pytest.fixture
def kv_conn(temp_store):
    """Yield the KeyValueConnection from the temp_store."""
    return temp_store.conn


@pytest.fixture
def plan_table(kv_conn):
    """Yield a bare TableCRUD over the plans key."""
    return TableCRUD(kv_conn, "plans", Plan)


@pytest.fixture
def sample_date():
    """Stable date value for deterministic tests."""
    return date(2025, 7, 9)


@pytest.fixture
def make_rep(temp_store):
    """Factory: create a representative with a given commission rate."""
    def _make(name="Rep", rate=5.0, user_id=None):
        return temp_store.representatives.add({
            "name": name,
            "email": f"{name.lower().replace(' ', '.')}@example.com",
            "commission_rate": rate,
            "user_id": user_id,
        })
    return _make


@pytest.fixture
def make_client(temp_store):
    """Factory: create a client, active by default."""
    def _make(name="Client", rep_id=None, status="Cliente Ativo", **extra):
        return temp_store.clients.add({
            "name": name,
            "phone": "(11) 90000-0000",
            "plan": "Carro Novo",
            "status": status,
            "rep_id": rep_id,
            **extra,
        })
    return _make


def plan_payload(name="Carro Novo", **overrides):
    """Helper: a valid plan payload without id."""
    payload = {
        "name": name,
        "type": "Automóvel",
        "value_range": (40000, 120000),
        "term": 80,
        "admin_fee": 15,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def plan_data():
    return plan_payload
