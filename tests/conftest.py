# tests/conftest.py
import pytest

import db


@pytest.fixture
def memory_db():
    db.configure("sqlite://")
    db.init_db()
    yield db
    db.engine.dispose()
