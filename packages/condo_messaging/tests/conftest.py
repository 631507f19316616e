"""
Pytest fixtures for condo messaging tests.

Tests run against a file-backed SQLite database. The pysqlite driver's own
transaction handling is disabled so SAVEPOINTs behave as on PostgreSQL.
"""

import json
from uuid import UUID

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from condo_messaging.persistence.models import (
    Building,
    BuildingAdmin,
    CondoBase,
    KnowledgeEntry,
    Resident,
    Unit,
)
from condo_messaging.providers.stub import (
    StubClassifierProvider,
    StubEmailProvider,
    StubMessagingProvider,
)

BUILDING_WHATSAPP = "+15550000001"
BUILDING_SMS = "+15550000002"
OWNER_NUMBER = "+15551110001"
RENTER_NUMBER = "+15551110002"


def _classifier_json(**overrides) -> str:
    payload = {
        "intent": "general_question",
        "priority": "low",
        "routeTo": "admin",
        "suggestedResponse": "La piscina abre a las 8am.",
        "requiresHumanReview": False,
        "extractedData": {},
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def classifier_json():
    """Build classifier output as the model would return it."""
    return _classifier_json


@pytest.fixture
def engine(tmp_path):
    """SQLite engine with working savepoints."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'condo.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    CondoBase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def building(db):
    building = Building(
        id=UUID("12345678-1234-1234-1234-123456789012"),
        name="Torre Mar",
        whatsapp_business_number=BUILDING_WHATSAPP,
        sms_number=BUILDING_SMS,
        preferred_language="es",
    )
    db.add(building)
    db.commit()
    return building


@pytest.fixture
def unit(db, building):
    unit = Unit(
        id=UUID("22222222-2222-2222-2222-222222222222"),
        tenant_id=building.id,
        unit_number="4B",
        owner_id=UUID("33333333-3333-3333-3333-333333333333"),
        current_renter_id=UUID("44444444-4444-4444-4444-444444444444"),
    )
    db.add(unit)
    db.commit()
    return unit


@pytest.fixture
def owner(db, building, unit):
    owner = Resident(
        id=unit.owner_id,
        tenant_id=building.id,
        unit_id=unit.id,
        first_name="Ana",
        last_name="Pérez",
        role="owner",
        phone=OWNER_NUMBER,
        whatsapp_number=OWNER_NUMBER,
        email="ana@example.com",
        preferred_language="es",
    )
    db.add(owner)
    db.commit()
    return owner


@pytest.fixture
def renter(db, building, unit):
    renter = Resident(
        id=unit.current_renter_id,
        tenant_id=building.id,
        unit_id=unit.id,
        first_name="John",
        last_name="Smith",
        role="renter",
        phone=RENTER_NUMBER,
        whatsapp_number=RENTER_NUMBER,
        preferred_language="en",
    )
    db.add(renter)
    db.commit()
    return renter


@pytest.fixture
def admin(db, building):
    admin = BuildingAdmin(
        tenant_id=building.id,
        name="Administración Torre Mar",
        email="admin@torremar.example.com",
        phone="+15559990000",
    )
    db.add(admin)
    db.commit()
    return admin


@pytest.fixture
def knowledge(db, building):
    entries = [
        KnowledgeEntry(
            tenant_id=building.id,
            question="¿A qué hora abre la piscina?",
            answer="La piscina abre de 8am a 8pm.",
            category="amenities",
            keywords=["piscina", "horario"],
            priority=10,
        ),
        KnowledgeEntry(
            tenant_id=building.id,
            question="¿Dónde estaciono a mis visitas?",
            answer="Las visitas usan los puestos V1 a V6.",
            category="parking",
            keywords=["visitas", "estacionamiento"],
            priority=5,
        ),
        KnowledgeEntry(
            tenant_id=building.id,
            question="Horario antiguo de la piscina",
            answer="Ya no aplica.",
            category="amenities",
            keywords=["piscina"],
            is_active=False,
        ),
    ]
    db.add_all(entries)
    db.commit()
    return entries


@pytest.fixture
def messaging():
    return StubMessagingProvider()


@pytest.fixture
def email():
    return StubEmailProvider()


@pytest.fixture
def classifier():
    return StubClassifierProvider(response=_classifier_json())
