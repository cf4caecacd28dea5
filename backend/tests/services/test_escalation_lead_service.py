# tests/services/test_escalation_lead_service.py
"""
Tests for escalation listing and lead capture/assignment.

Run with: pytest backend/tests/services/test_escalation_lead_service.py -v
"""

import pytest
from uuid import uuid4

from enybot.errors import AppError, ErrorKind
from enybot.models import Escalation, Lead, LeadStatus
from enybot.services import escalation_service, lead_service
from enybot.services.pagination import validate_page


# ============================================================================
# TEST: Pagination
# ============================================================================

class TestPagination:

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 5), (2, -3)])
    def test_rejects_non_positive(self, page, limit):
        with pytest.raises(AppError) as exc:
            validate_page(page, limit)
        assert exc.value.kind == ErrorKind.BAD_REQUEST
        assert exc.value.message == "Invalid page or limit"

    def test_offset(self):
        assert validate_page(1, 10) == 0
        assert validate_page(3, 5) == 10


# ============================================================================
# TEST: Escalations
# ============================================================================

class TestEscalations:
    """Escalation records"""

    @pytest.mark.asyncio
    async def test_create_escalation(self, mock_db, added_objects):
        escalation = await escalation_service.create_escalation(
            mock_db, "How do I enroll?", "user@example.com", confidence=0.3, reason="low confidence"
        )

        assert added_objects(mock_db, Escalation) == [escalation]
        assert escalation.id is not None
        assert escalation.context_used == []
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_returns_page(self, mock_db, db_result, sample_escalation):
        mock_db.execute.return_value = db_result(values=[sample_escalation])

        escalations = await escalation_service.list_escalations(mock_db, page=2, limit=5)

        assert escalations == [sample_escalation]
        stmt = mock_db.execute.await_args.args[0]
        sql = " ".join(str(stmt.compile(compile_kwargs={"literal_binds": True})).split())
        assert "LIMIT 5 OFFSET 5" in sql

    @pytest.mark.asyncio
    async def test_list_never_exceeds_limit(self, mock_db, db_result, sample_escalation):
        mock_db.execute.return_value = db_result(values=[sample_escalation])

        escalations = await escalation_service.list_escalations(mock_db, page=1, limit=1)

        assert len(escalations) <= 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
    async def test_list_invalid_page(self, mock_db, page, limit):
        with pytest.raises(AppError) as exc:
            await escalation_service.list_escalations(mock_db, page=page, limit=limit)

        assert exc.value.kind == ErrorKind.BAD_REQUEST
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_missing_escalation(self, mock_db):
        with pytest.raises(AppError) as exc:
            await escalation_service.get_escalation(mock_db, uuid4())
        assert exc.value.kind == ErrorKind.NOT_FOUND


# ============================================================================
# TEST: Leads
# ============================================================================

class TestLeads:
    """Lead capture and assignment"""

    @pytest.mark.asyncio
    async def test_create_lead(self, mock_db, added_objects):
        lead = await lead_service.create_lead(mock_db, "Prospect@Example.com", "CBAP pricing")

        assert added_objects(mock_db, Lead) == [lead]
        assert lead.email == "prospect@example.com"
        assert lead.status == LeadStatus.NEW.value

    @pytest.mark.asyncio
    async def test_assign_sets_status_and_owner(self, mock_db, db_result, sample_lead):
        mock_db.execute.return_value = db_result(sample_lead)

        lead = await lead_service.assign_lead(mock_db, sample_lead.id, "staff-42")

        assert lead.assigned_to == "staff-42"
        assert lead.status == "assigned"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_assign_ignores_prior_status(self, mock_db, db_result, sample_lead):
        sample_lead.status = LeadStatus.CLOSED.value
        mock_db.execute.return_value = db_result(sample_lead)

        lead = await lead_service.assign_lead(mock_db, sample_lead.id, "staff-7")

        assert lead.status == "assigned"

    @pytest.mark.asyncio
    async def test_assign_missing_lead(self, mock_db):
        with pytest.raises(AppError) as exc:
            await lead_service.assign_lead(mock_db, uuid4(), "staff-42")

        assert exc.value.kind == ErrorKind.NOT_FOUND
        assert exc.value.message == "Lead not found"
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_leads_invalid_page(self, mock_db):
        with pytest.raises(AppError) as exc:
            await lead_service.list_leads(mock_db, page=0)
        assert exc.value.kind == ErrorKind.BAD_REQUEST

    @pytest.mark.asyncio
    async def test_list_leads_by_status(self, mock_db, db_result, sample_lead):
        mock_db.execute.return_value = db_result(values=[sample_lead])

        leads = await lead_service.list_leads(mock_db, status=LeadStatus.NEW)

        assert leads == [sample_lead]
        stmt = mock_db.execute.await_args.args[0]
        assert "leads.status" in str(stmt)
