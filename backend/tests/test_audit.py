"""
Audit log: diffs are recorded and storage failures never reach the caller.
"""
import pytest
from unittest.mock import AsyncMock

from models import AuditAction, UserRole
from utils.audit import calculate_diff, create_audit_log


class TestCalculateDiff:

    def test_changed_added_removed(self):
        diff = calculate_diff({"name": "A", "active": True}, {"name": "B", "role": "admin"})
        assert diff == {
            "added": {"role": "admin"},
            "removed": {"active": True},
            "changed": {"name": {"from": "A", "to": "B"}},
        }

    def test_identical_states(self):
        assert calculate_diff({"a": 1}, {"a": 1}) == {}


class TestCreateAuditLog:

    @pytest.mark.asyncio
    async def test_record_written(self, db):
        audit_id = await create_audit_log(
            action=AuditAction.USER_UPDATED,
            actor_role=UserRole.ADMIN,
            actor_id="USR-1",
            resource_type="user",
            resource_id="USR-2",
            before_state={"active": True},
            after_state={"active": False},
        )
        assert audit_id
        doc = db.audit_logs.insert_one.call_args.args[0]
        assert doc["action"] == "USER_UPDATED"
        assert doc["actor_role"] == "admin"
        assert isinstance(doc["timestamp"], str)
        assert doc["metadata"]["diff"] == {"changed": {"active": {"from": True, "to": False}}}

    @pytest.mark.asyncio
    async def test_storage_failure_swallowed(self, db):
        db.audit_logs.insert_one = AsyncMock(side_effect=RuntimeError("mongo down"))
        assert await create_audit_log(action=AuditAction.USER_LOGIN_FAILED) == ""
