"""
Visit submission and query tests.

Covers:
- Ordered field validation with first-failure messages
- PTP conditional fields
- Append-only history and newest-first ordering
- Agent-scoped and manager search reads
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from fieldvisit.models.visit import Visit
from fieldvisit.schemas.enums import UserRole, VisitStatus, VISIT_STATUS_VALUES

from tests.conftest import LOAN_NUMBER


# ============================================
# SUBMISSION
# ============================================


class TestSubmitVisit:

    def test_valid_visit_is_created(self, client, agent, visit_payload):
        response = client.post("/api/visits", json=visit_payload, headers=agent.headers)

        assert response.status_code == 201
        visit = response.json()["visit"]
        assert visit["visited_at"]
        assert visit["loan_number"] == LOAN_NUMBER
        assert visit["person_visited"] == "Jane Roe"
        assert visit["status"] == "Received"
        assert visit["comments"] == "paid in full"
        assert visit["photo_urls"] == ["https://x/1.jpg"]
        assert visit["latitude"] == 12.97
        assert visit["longitude"] == 77.59
        assert visit["address"] == "MG Road"
        assert visit["ptp_date"] is None
        assert visit["ptp_amount"] is None

    def test_agent_snapshot_comes_from_token_not_payload(self, client, agent, visit_payload):
        payload = dict(visit_payload, agent_id="someone-else", agent_name="Mallory")
        visit = client.post("/api/visits", json=payload, headers=agent.headers).json()["visit"]

        assert visit["agent_id"] == agent.id
        assert visit["agent_name"] == agent.name
        assert visit["agent_phone"] == agent.phone

    def test_short_loan_number_rejected(self, client, agent, visit_payload):
        payload = dict(visit_payload, loan_number="12345")
        response = client.post("/api/visits", json=payload, headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Loan number must be exactly 21 digits"}

    @pytest.mark.parametrize("status", VISIT_STATUS_VALUES)
    @pytest.mark.parametrize("loan_number", [
        "",
        "12345678901234567890",
        "1234567890123456789012",
        "12345678901234567890a",
        " 123456789012345678901",
        "１２３４５６７８９０１２３４５６７８９０１",
    ])
    def test_bad_loan_numbers_rejected_for_every_status(self, client, agent, visit_payload, status, loan_number):
        payload = dict(visit_payload, loan_number=loan_number, status=status,
                       ptp_date="2026-11-01", ptp_amount=500)
        response = client.post("/api/visits", json=payload, headers=agent.headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Loan number must be exactly 21 digits"

    @pytest.mark.parametrize("photo_urls", [[], [f"https://x/{i}.jpg" for i in range(6)]])
    def test_photo_count_out_of_range_rejected(self, client, agent, visit_payload, photo_urls):
        payload = dict(visit_payload, photo_urls=photo_urls)
        response = client.post("/api/visits", json=payload, headers=agent.headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Between 1 and 5 photos are required"

    def test_five_photos_accepted(self, client, agent, visit_payload):
        payload = dict(visit_payload, photo_urls=[f"https://x/{i}.jpg" for i in range(5)])
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.status_code == 201

    @pytest.mark.parametrize("field,value,message", [
        ("person_visited", "   ", "Person visited is required"),
        ("status", "Paid", "Status must be one of: PTP, Not Found, Partial Received, Received, Others"),
        ("comments", "", "Comments are required"),
        ("photo_urls", None, "Between 1 and 5 photos are required"),
        ("photo_urls", ["  "], "Photo URLs must be non-empty strings"),
        ("latitude", None, "Geolocation is required"),
        ("longitude", None, "Geolocation is required"),
        ("address", " ", "Address is required"),
    ])
    def test_field_rules(self, client, agent, visit_payload, field, value, message):
        payload = dict(visit_payload, **{field: value})
        response = client.post("/api/visits", json=payload, headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": message}

    @pytest.mark.parametrize("overrides", [
        {"loan_number": "12345", "latitude": "north"},
        {"loan_number": 12345},
        {"loan_number": 123456789012345678901},
        {"loan_number": None, "photo_urls": "not-a-list", "ptp_amount": "lots"},
    ])
    def test_loan_number_checked_before_other_field_types(self, client, agent, visit_payload, overrides):
        response = client.post("/api/visits", json=dict(visit_payload, **overrides), headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Loan number must be exactly 21 digits"}

    @pytest.mark.parametrize("field,value,message", [
        ("person_visited", 42, "Person visited is required"),
        ("status", ["PTP"], "Status must be one of: PTP, Not Found, Partial Received, Received, Others"),
        ("comments", {"text": "paid"}, "Comments are required"),
        ("photo_urls", "https://x/1.jpg", "Between 1 and 5 photos are required"),
        ("photo_urls", [7], "Photo URLs must be non-empty strings"),
        ("latitude", "north", "Geolocation is required"),
        ("longitude", True, "Geolocation is required"),
        ("address", 12, "Address is required"),
    ])
    def test_wrong_types_get_their_field_message(self, client, agent, visit_payload, field, value, message):
        response = client.post("/api/visits", json=dict(visit_payload, **{field: value}), headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": message}

    def test_first_failure_wins(self, client, agent, visit_payload):
        payload = dict(visit_payload, person_visited="", comments="", address="")
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.json()["error"] == "Person visited is required"

    def test_out_of_range_coordinates_accepted(self, client, agent, visit_payload):
        payload = dict(visit_payload, latitude=123.4, longitude=-999.0)
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.status_code == 201

    def test_text_fields_are_trimmed(self, client, agent, visit_payload):
        payload = dict(visit_payload, person_visited="  Jane Roe ", comments=" ok ", address=" MG Road ")
        visit = client.post("/api/visits", json=payload, headers=agent.headers).json()["visit"]
        assert (visit["person_visited"], visit["comments"], visit["address"]) == ("Jane Roe", "ok", "MG Road")

    def test_manager_cannot_submit(self, client, manager, visit_payload):
        response = client.post("/api/visits", json=visit_payload, headers=manager.headers)
        assert response.status_code == 403

    def test_storage_failure_is_generic_500(self, client, agent, visit_payload, monkeypatch):
        def broken_commit(self):
            raise SQLAlchemyError("disk on fire")

        monkeypatch.setattr("sqlalchemy.orm.Session.commit", broken_commit)
        response = client.post("/api/visits", json=visit_payload, headers=agent.headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save visit"}


class TestPromiseToPay:

    def test_ptp_requires_date(self, client, agent, visit_payload):
        payload = dict(visit_payload, status="PTP", ptp_amount=1500)
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.json() == {"error": "PTP date is required for PTP visits"}

    def test_ptp_rejects_bad_date(self, client, agent, visit_payload):
        payload = dict(visit_payload, status="PTP", ptp_date="next friday", ptp_amount=1500)
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.json() == {"error": "PTP date must be a valid date (YYYY-MM-DD)"}

    def test_ptp_rejects_non_string_date(self, client, agent, visit_payload):
        payload = dict(visit_payload, status="PTP", ptp_date=20261101, ptp_amount=1500)
        response = client.post("/api/visits", json=payload, headers=agent.headers)
        assert response.json() == {"error": "PTP date must be a valid date (YYYY-MM-DD)"}

    @pytest.mark.parametrize("amount", [None, 0, -10, "1500", True])
    def test_ptp_requires_positive_amount(self, client, agent, visit_payload, amount):
        payload = dict(visit_payload, status="PTP", ptp_date="2026-11-01", ptp_amount=amount)
        response = client.post("/api/visits", json=payload, headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "PTP amount must be a positive number"}

    def test_ptp_visit_stores_promise(self, client, agent, visit_payload):
        payload = dict(visit_payload, status="PTP", ptp_date="2026-11-01", ptp_amount=1500.5)
        visit = client.post("/api/visits", json=payload, headers=agent.headers).json()["visit"]

        assert visit["ptp_date"] == "2026-11-01"
        assert visit["ptp_amount"] == 1500.5

    def test_ptp_fields_dropped_for_other_statuses(self, client, agent, visit_payload):
        payload = dict(visit_payload, status="Not Found", ptp_date="2026-11-01", ptp_amount=100)
        visit = client.post("/api/visits", json=payload, headers=agent.headers).json()["visit"]

        assert visit["ptp_date"] is None
        assert visit["ptp_amount"] is None


# ============================================
# HISTORY
# ============================================


class TestMyVisits:

    def test_resubmission_appends_and_lists_newest_first(self, client, agent, visit_payload, db):
        first = client.post("/api/visits", json=dict(visit_payload, comments="first"), headers=agent.headers)
        second = client.post("/api/visits", json=dict(visit_payload, comments="second"), headers=agent.headers)
        assert first.status_code == second.status_code == 201

        response = client.get("/api/visits/my", params={"loan_number": LOAN_NUMBER}, headers=agent.headers)

        assert response.status_code == 200
        visits = response.json()["visits"]
        assert [v["comments"] for v in visits] == ["second", "first"]
        assert visits[0]["id"] != visits[1]["id"]
        assert db.query(Visit).count() == 2

    def test_only_own_visits_for_that_loan(self, client, agent, make_account, visit_payload):
        other = make_account("Other Agent", "9000000001", UserRole.field_agent)
        client.post("/api/visits", json=visit_payload, headers=agent.headers)
        client.post("/api/visits", json=visit_payload, headers=other.headers)
        client.post("/api/visits", json=dict(visit_payload, loan_number="9" * 21), headers=agent.headers)

        visits = client.get("/api/visits/my", params={"loan_number": LOAN_NUMBER}, headers=agent.headers).json()["visits"]

        assert len(visits) == 1
        assert visits[0]["agent_id"] == agent.id

    @pytest.mark.parametrize("params", [{}, {"loan_number": "123"}])
    def test_requires_valid_loan_number(self, client, agent, params):
        response = client.get("/api/visits/my", params=params, headers=agent.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Valid 21-digit loan number is required"}

    def test_manager_cannot_use_agent_history(self, client, manager):
        response = client.get("/api/visits/my", params={"loan_number": LOAN_NUMBER}, headers=manager.headers)
        assert response.status_code == 403


class TestSearch:

    @pytest.fixture
    def seeded(self, client, agent, make_account, visit_payload):
        other = make_account("Priya Sharma", "9123400000", UserRole.field_agent)
        client.post("/api/visits", json=visit_payload, headers=agent.headers)
        client.post("/api/visits", json=dict(visit_payload, loan_number="9" * 21), headers=agent.headers)
        client.post("/api/visits", json=visit_payload, headers=other.headers)
        return other

    def test_requires_a_parameter(self, client, manager):
        response = client.get("/api/visits/search", headers=manager.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "At least one search parameter is required"}

    def test_blank_parameters_count_as_missing(self, client, manager):
        response = client.get("/api/visits/search", params={"loan_number": "  ", "agent_query": ""},
                              headers=manager.headers)
        assert response.status_code == 400

    def test_by_loan_number(self, client, manager, seeded):
        visits = client.get("/api/visits/search", params={"loan_number": LOAN_NUMBER},
                            headers=manager.headers).json()["visits"]

        assert len(visits) == 2
        assert {v["loan_number"] for v in visits} == {LOAN_NUMBER}

    def test_agent_query_matches_name_case_insensitively(self, client, manager, seeded):
        visits = client.get("/api/visits/search", params={"agent_query": "PRIYA"},
                            headers=manager.headers).json()["visits"]

        assert len(visits) == 1
        assert visits[0]["agent_name"] == "Priya Sharma"

    def test_agent_query_matches_phone(self, client, manager, agent, seeded):
        visits = client.get("/api/visits/search", params={"agent_query": "98765"},
                            headers=manager.headers).json()["visits"]

        assert len(visits) == 2
        assert all(v["agent_id"] == agent.id for v in visits)

    def test_both_parameters_combine(self, client, manager, agent, seeded):
        visits = client.get("/api/visits/search", params={"loan_number": LOAN_NUMBER, "agent_query": "ravi"},
                            headers=manager.headers).json()["visits"]

        assert len(visits) == 1
        assert visits[0]["agent_id"] == agent.id

    def test_like_wildcards_are_literal(self, client, manager, seeded):
        visits = client.get("/api/visits/search", params={"agent_query": "%"},
                            headers=manager.headers).json()["visits"]
        assert visits == []

    def test_agent_cannot_search(self, client, agent):
        response = client.get("/api/visits/search", params={"loan_number": LOAN_NUMBER}, headers=agent.headers)
        assert response.status_code == 403

    def test_results_capped_at_200_newest_first(self, client, manager, agent, db):
        base = datetime(2026, 1, 1, 9, 0)
        # Newest visits get the lowest ids
        for i in reversed(range(201)):
            db.add(Visit(
                loan_number=LOAN_NUMBER, agent_id=agent.id, agent_name=agent.name, agent_phone=agent.phone,
                person_visited="Jane Roe", status=VisitStatus.not_found, comments=f"visit {i}",
                photo_urls=["https://x/1.jpg"], latitude=12.97, longitude=77.59, address="MG Road",
                visited_at=base + timedelta(minutes=i),
            ))
        db.commit()

        visits = client.get("/api/visits/search", params={"loan_number": LOAN_NUMBER},
                            headers=manager.headers).json()["visits"]

        assert len(visits) == 200
        assert visits[0]["comments"] == "visit 200"
        assert visits[-1]["comments"] == "visit 1"
        stamps = [v["visited_at"] for v in visits]
        assert stamps == sorted(stamps, reverse=True)
