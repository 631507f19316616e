"""
Tests for maintenance request creation and status summaries.
"""

from datetime import datetime, timedelta, timezone

from condo_messaging.contracts.payloads import (
    ClassificationResult,
    Intent,
    Language,
    Priority,
    RouteTo,
)
from condo_messaging.persistence.models import MaintenanceRequest
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.service import MaintenanceExtractor
from condo_messaging.service.maintenance import format_status_summary, sort_for_status


def maintenance_result(extracted_data=None, intent=Intent.MAINTENANCE_REQUEST) -> ClassificationResult:
    return ClassificationResult(
        intent=intent,
        priority=Priority.HIGH,
        route_to=RouteTo.OWNER,
        suggested_response="",
        requires_human_review=True,
        extracted_data=extracted_data or {},
    )


class TestMaybeCreate:
    """Tests for MaintenanceExtractor.maybe_create."""

    def create(self, db, building, unit, renter, result, text="El aire acondicionado no funciona"):
        request = MaintenanceExtractor(CondoRepository(db)).maybe_create(
            result,
            tenant_id=building.id,
            unit_id=unit.id,
            resident_id=renter.id,
            conversation_id=None,
            message_text=text,
        )
        db.commit()
        return request

    def test_creates_open_request(self, db, building, unit, renter):
        result = maintenance_result({"maintenanceCategory": "ac_technician", "location": "sala"})
        request = self.create(db, building, unit, renter, result)

        assert request is not None
        assert db.query(MaintenanceRequest).count() == 1
        assert request.status == "open"
        assert request.category == "ac_technician"
        assert request.location == "sala"
        assert request.priority == "high"
        assert request.unit_id == unit.id
        assert request.description == "El aire acondicionado no funciona"

    def test_category_defaults_to_general(self, db, building, unit, renter):
        """Test a missing maintenanceCategory falls back to general."""
        request = self.create(db, building, unit, renter, maintenance_result())
        assert request.category == "general"
        assert request.location is None

    def test_title_truncated(self, db, building, unit, renter):
        text = "Fuga " * 40
        request = self.create(db, building, unit, renter, maintenance_result(), text=text)
        assert len(request.title) == 100
        assert request.description == text.strip()

    def test_other_intents_create_nothing(self, db, building, unit, renter):
        result = maintenance_result(intent=Intent.NOISE_COMPLAINT)
        assert self.create(db, building, unit, renter, result) is None
        assert db.query(MaintenanceRequest).count() == 0

    def test_no_deduplication(self, db, building, unit, renter):
        """Test repeated reports each create a row."""
        self.create(db, building, unit, renter, maintenance_result())
        self.create(db, building, unit, renter, maintenance_result())
        assert db.query(MaintenanceRequest).count() == 2


class TestStatusSummary:
    """Tests for the status_inquiry summary."""

    def make_request(self, title, priority, status="open", age_hours=0):
        return MaintenanceRequest(
            title=title,
            priority=priority,
            status=status,
            created_at=datetime.now(timezone.utc) - timedelta(hours=age_hours),
        )

    def test_no_requests(self):
        assert format_status_summary([], Language.EN) == "You have no active maintenance requests at the moment."

    def test_sorted_by_priority_then_recency(self):
        requests = [
            self.make_request("old low", "low", age_hours=5),
            self.make_request("new high", "high", age_hours=1),
            self.make_request("old high", "high", age_hours=10),
            self.make_request("emergency", "emergency", age_hours=20),
        ]
        titles = [r.title for r in sort_for_status(requests)]
        assert titles == ["emergency", "new high", "old high", "old low"]

    def test_summary_capped_at_five(self):
        requests = [self.make_request(f"req {i}", "medium", age_hours=i) for i in range(7)]
        summary = format_status_summary(requests, Language.ES)
        assert summary.startswith("Tienes 7 solicitud(es) de mantenimiento activa(s). Mostrando 5:")
        assert "5. req 4 - Abierta (media)" in summary
        assert "req 5" not in summary

    def test_status_labels(self):
        summary = format_status_summary([self.make_request("Ducha", "high", status="in_progress")], Language.EN)
        assert "1. Ducha - In progress (high)" in summary

    def test_only_active_requests_for_resident(self, db, building, unit, owner, renter):
        repo = CondoRepository(db)
        for status in ("open", "in_progress", "resolved"):
            repo.create_maintenance_request(
                tenant_id=building.id,
                resident_id=renter.id,
                unit_id=unit.id,
                conversation_id=None,
                category="plumber",
                title=f"Fuga {status}",
                description="Fuga",
                priority="medium",
            ).status = status
        repo.create_maintenance_request(
            tenant_id=building.id,
            resident_id=owner.id,
            unit_id=unit.id,
            conversation_id=None,
            category="painter",
            title="Pintura",
            description="Pintura",
            priority="low",
        )
        db.commit()

        summary = MaintenanceExtractor(repo).status_summary(building.id, renter.id, Language.ES)

        assert "Fuga open" in summary
        assert "Fuga in_progress" in summary
        assert "Fuga resolved" not in summary
        assert "Pintura" not in summary
