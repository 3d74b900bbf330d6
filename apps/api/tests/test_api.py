"""HTTP-level tests for the donation tracker routers."""

from datetime import date, timedelta

import pytest

from app.core.exceptions import ConflictError, DonationTrackerError
from app.db.models import Donor
from app.services import donation_service


def _donation_payload(donor_id: int, **overrides) -> dict:
    payload = {
        "amount": 2500,
        "date": date.today().isoformat(),
        "payment_method": "check",
        "donor_id": donor_id,
    }
    payload.update(overrides)
    return payload


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestDonations:
    @pytest.mark.asyncio
    async def test_create_donation(self, client, donor):
        response = await client.post("/donations", json=_donation_payload(donor.id))

        assert response.status_code == 201
        data = response.json()
        assert data["amount"] == 2500
        assert data["status"] == "succeeded"
        assert data["needs_review"] is False

    @pytest.mark.asyncio
    async def test_create_donation_with_donor_hints(self, client):
        payload = _donation_payload(None, donor={"name": "New Person", "email": "new@example.com"})

        response = await client.post("/donations", json=payload)

        assert response.status_code == 201
        donor = await client.get(f"/donors/{response.json()['donor_id']}")
        assert donor.json()["email"] == "new@example.com"

    @pytest.mark.asyncio
    async def test_future_date_is_field_error(self, client, donor):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        response = await client.post("/donations", json=_donation_payload(donor.id, date=tomorrow))

        assert response.status_code == 422
        assert response.json() == {"errors": {"date": ["cannot be in the future"]}}

    @pytest.mark.asyncio
    async def test_unknown_donor_is_404(self, client):
        response = await client.post("/donations", json=_donation_payload(999))

        assert response.status_code == 404
        assert response.json()["detail"] == "Donor 999 not found"

    @pytest.mark.asyncio
    async def test_views(self, client, donor):
        await client.post("/donations", json=_donation_payload(donor.id))
        await client.post("/donations", json=_donation_payload(donor.id, status="failed"))

        pending = await client.get("/donations", params={"view": "pending_review"})
        active = await client.get("/donations", params={"view": "active"})

        assert [d["status"] for d in pending.json()] == ["failed"]
        assert [d["status"] for d in active.json()] == ["succeeded"]


class TestDonors:
    @pytest.mark.asyncio
    async def test_archive_blocked_by_active_sponsorship(self, client, donor, child):
        created = await client.post(
            "/sponsorships",
            json={"donor_id": donor.id, "child_id": child.id, "monthly_amount": 5000},
        )
        assert created.status_code == 201

        response = await client.post(f"/donors/{donor.id}/archive")

        assert response.status_code == 422
        assert response.json() == {"errors": {"base": ["Cannot archive donor with active sponsorships"]}}

        ended = await client.post(f"/sponsorships/{created.json()['id']}/end")
        assert ended.json()["end_date"] == date.today().isoformat()
        archived = await client.post(f"/donors/{donor.id}/archive")
        assert archived.status_code == 200
        assert archived.json()["archived_at"] is not None

    @pytest.mark.asyncio
    async def test_listing_hides_archived_unless_requested(self, client, donor, make_donor):
        other = make_donor("Other Donor", "other@example.com")
        await client.post(f"/donors/{other.id}/archive")

        default = await client.get("/donors")
        everything = await client.get("/donors", params={"include_archived": "true"})

        assert [d["id"] for d in default.json()] == [donor.id]
        assert {d["id"] for d in everything.json()} == {donor.id, other.id}

    @pytest.mark.asyncio
    async def test_merge(self, client, db, donor, make_donor):
        other = make_donor("Jane Q. Donor", "jane.q@example.com")

        response = await client.post(
            "/donors/merge",
            json={"donor_ids": [donor.id, other.id], "field_selections": {"email": other.id}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["donor"]["email"] == "jane.q@example.com"
        assert data["merged_donor_ids"] == [other.id]
        assert db.get(Donor, other.id).merged_into_id == donor.id

    @pytest.mark.asyncio
    async def test_delete_without_history(self, client, make_donor):
        temp = make_donor("Temp", "temp@example.com")

        response = await client.delete(f"/donors/{temp.id}")

        assert response.status_code == 204
        assert (await client.get(f"/donors/{temp.id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_email_is_field_error(self, client, donor):
        response = await client.post("/donors", json={"name": "Copy", "email": "jane@example.com"})

        assert response.status_code == 422
        assert response.json() == {"errors": {"email": ["has already been taken"]}}


class TestImports:
    @pytest.mark.asyncio
    async def test_import_payments(self, client, child):
        record = {
            "amount_cents": 4000,
            "date": (date.today() - timedelta(days=3)).isoformat(),
            "payment_method": "stripe",
            "donor": {"name": "Sam Card", "email": "sam@example.com"},
            "child_ids": [child.id],
            "status": "succeeded",
            "external_subscription_id": "sub_9",
            "external_invoice_id": "in_9",
        }

        response = await client.post(
            "/imports/payments", json={"records": [record, record, {**record, "external_invoice_id": None}]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["succeeded_count"] == 1
        assert data["skipped_count"] == 1
        assert data["errors"] == [{"row": 3, "message": "External invoice id can't be blank"}]


class TestErrorResponses:
    @pytest.mark.asyncio
    async def test_unresolved_conflict_is_409(self, client, donor, monkeypatch):
        def fail(db, params):
            raise ConflictError("Active sponsorship already exists")

        monkeypatch.setattr(donation_service, "create_donation", fail)

        response = await client.post("/donations", json=_donation_payload(donor.id))

        assert response.status_code == 409
        assert response.json() == {"detail": "Active sponsorship already exists"}

    @pytest.mark.asyncio
    async def test_other_service_error_is_400(self, client, donor, monkeypatch):
        def fail(db, params):
            raise DonationTrackerError("Import source unavailable")

        monkeypatch.setattr(donation_service, "create_donation", fail)

        response = await client.post("/donations", json=_donation_payload(donor.id))

        assert response.status_code == 400
        assert response.json() == {"detail": "Import source unavailable"}
