"""
Pytest configuration for integration tests.

Runs the webhook app against a throwaway SQLite database and stub providers.
"""

import os
import sys
from uuid import UUID

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# Add project paths to sys.path for imports
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.join(project_root, "packages", "condocore", "src"))
sys.path.insert(0, os.path.join(project_root, "packages", "condo_messaging", "src"))
sys.path.insert(0, os.path.join(project_root, "apps", "inbound-webhook", "src"))

# Set environment variables for tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("MESSAGING_PROVIDER", "stub")


@pytest.fixture
def db_session(tmp_path):
    """Session on a fresh SQLite file with savepoint support."""
    from condo_messaging.persistence.models import CondoBase

    engine = create_engine(
        f"sqlite:///{tmp_path / 'webhook.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    CondoBase.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def seeded(db_session):
    """One building with a single renter."""
    from condo_messaging.persistence.models import Building, Resident, Unit

    building = Building(
        id=UUID("12345678-1234-1234-1234-123456789012"),
        name="Torre Mar",
        whatsapp_business_number="+15550000001",
        sms_number="+15550000002",
    )
    renter = Resident(
        tenant_id=building.id,
        first_name="John",
        last_name="Smith",
        role="renter",
        phone="+15551110002",
        whatsapp_number="+15551110002",
        preferred_language="en",
    )
    db_session.add_all([building, renter])
    db_session.flush()
    db_session.add(
        Unit(
            tenant_id=building.id,
            unit_number="4B",
            owner_id=UUID("33333333-3333-3333-3333-333333333333"),
            current_renter_id=renter.id,
        )
    )
    db_session.commit()
    return building, renter
