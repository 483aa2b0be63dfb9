"""
Lead intake: duplicate detection by email then phone, within the creator's
organization (or across all organizations for super_admin).
"""
import pytest

from conftest import user_doc
from errors import AuthorizationDenied
from models import LeadCreateRequest, LeadStatus, Principal, UserRole
from services.lead_service import LeadService

EXISTING = {
    "lead_id": "LEAD-20250101000000-AAAAAA",
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane@example.com",
    "phone": "555-0100",
    "status": "VERIFIED",
    "organization_id": "ORG-A",
    "created_by": "USR-OLD",
    "created_at": "2025-01-01T00:00:00+00:00",
}


def find_users(users):
    return lambda query, projection=None: users.get(query.get("user_id"))


def find_leads(leads):
    def find_one(query, projection=None):
        for lead in leads:
            if all(lead.get(k) == v for k, v in query.items()):
                return dict(lead)
        return None
    return find_one


def setup_store(db, caller, leads=(EXISTING,)):
    users = {caller["user_id"]: caller, "USR-OLD": user_doc("USR-OLD", name="Olga Old")}
    db.users.find_one.side_effect = find_users(users)
    db.leads.find_one.side_effect = find_leads(list(leads))


def principal(user):
    return Principal(id=user["user_id"], email=user["email"], role=UserRole(user["role"]))


class TestDuplicateByEmail:

    @pytest.mark.asyncio
    async def test_same_email_same_organization_is_duplicate(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(first_name="J", last_name="D", email="jane@example.com", notes="walk-in"),
            principal(caller),
        )

        lead = result["lead"]
        assert result["is_duplicate"] is True
        assert result["message"] == "Lead created but marked as DUPLICATE (matching email)"
        assert lead["status"] == LeadStatus.DUPLICATE.value
        assert lead["notes"] == (
            "walk-in\n\n[SYSTEM] This lead has been marked as a duplicate because the "
            "email matches an existing lead (Jane Doe)."
        )
        assert lead["status_history"][0]["notes"] == (
            "Lead created and automatically marked as DUPLICATE (matching email)"
        )
        assert result["duplicate_info"] == {
            "id": EXISTING["lead_id"],
            "name": "Jane Doe",
            "status": "VERIFIED",
            "created_by": "Olga Old",
            "created_at": EXISTING["created_at"],
        }
        first_query = db.leads.find_one.call_args_list[0].args[0]
        assert first_query == {"organization_id": "ORG-A", "email": "jane@example.com"}

    @pytest.mark.asyncio
    async def test_supplied_status_ignored_for_duplicate(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(email="jane@example.com", status=LeadStatus.PAID),
            principal(caller),
        )
        assert result["lead"]["status"] == "DUPLICATE"

    @pytest.mark.asyncio
    async def test_same_email_other_organization_is_not_duplicate(self, db):
        caller = user_doc("USR-B", organization_id="ORG-B")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(first_name="J", email="jane@example.com"),
            principal(caller),
        )
        assert result["is_duplicate"] is False
        assert result["duplicate_info"] is None
        assert result["lead"]["status"] == "PENDING"
        assert result["lead"]["organization_id"] == "ORG-B"

    @pytest.mark.asyncio
    async def test_super_admin_matches_across_organizations(self, db):
        caller = user_doc("USR-S", role="super_admin", organization_id="ORG-Z")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(email="jane@example.com"),
            principal(caller),
        )
        assert result["is_duplicate"] is True
        assert db.leads.find_one.call_args_list[0].args[0] == {"email": "jane@example.com"}

    @pytest.mark.asyncio
    async def test_email_match_is_exact(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(email="JANE@example.com"),
            principal(caller),
        )
        assert result["is_duplicate"] is False


class TestDuplicateByPhone:

    @pytest.mark.asyncio
    async def test_phone_checked_when_email_does_not_match(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(email="other@example.com", phone="555-0100"),
            principal(caller),
        )
        assert result["is_duplicate"] is True
        assert result["message"] == "Lead created but marked as DUPLICATE (matching phone number)"
        assert "phone number matches an existing lead (Jane Doe)" in result["lead"]["notes"]

    @pytest.mark.asyncio
    async def test_phone_format_not_normalized(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(
            LeadCreateRequest(phone="5550100"),
            principal(caller),
        )
        assert result["is_duplicate"] is False

    @pytest.mark.asyncio
    async def test_unknown_creator_reported(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        orphan = {**EXISTING, "created_by": "USR-GONE"}
        setup_store(db, caller, leads=[orphan])

        result = await LeadService.create_lead(
            LeadCreateRequest(phone="555-0100"),
            principal(caller),
        )
        assert result["duplicate_info"]["created_by"] == "Unknown"


class TestCreateLead:

    @pytest.mark.asyncio
    async def test_new_lead_document(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller, leads=[])

        result = await LeadService.create_lead(
            LeadCreateRequest(
                first_name="Sam",
                last_name="Lee",
                application_type="PFAS",
                status=LeadStatus.WORKING,
                fields={"diagnosis": "Kidney", "treatment": ""},
            ),
            principal(caller),
        )

        lead = result["lead"]
        assert result["message"] == "Lead created successfully"
        assert lead["lead_id"].startswith("LEAD-")
        assert lead["status"] == "WORKING"
        assert lead["fields"] == [{"key": "diagnosis", "value": "Kidney"}]
        assert lead["organization_id"] == "ORG-A"
        assert lead["created_by"] == "USR-A"
        assert lead["version"] == 1
        assert len(lead["status_history"]) == 1
        first = lead["status_history"][0]
        assert first["from_status"] == ""
        assert first["to_status"] == "WORKING"
        assert first["notes"] == "Lead created"
        db.leads.insert_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_contact_details_skips_lookup(self, db):
        caller = user_doc("USR-A", organization_id="ORG-A")
        setup_store(db, caller)

        result = await LeadService.create_lead(LeadCreateRequest(first_name="Sam"), principal(caller))
        assert result["lead"]["status"] == "PENDING"
        db.leads.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_member_without_organization_cannot_create(self, db):
        caller = user_doc("USR-A", organization_id=None)
        setup_store(db, caller)

        with pytest.raises(AuthorizationDenied):
            await LeadService.create_lead(LeadCreateRequest(first_name="Sam"), principal(caller))
        db.leads.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_super_admin_without_organization_creates_unscoped_lead(self, db):
        caller = user_doc("USR-S", role="super_admin", organization_id=None)
        setup_store(db, caller, leads=[])

        result = await LeadService.create_lead(LeadCreateRequest(first_name="Sam"), principal(caller))
        assert result["lead"]["organization_id"] is None
