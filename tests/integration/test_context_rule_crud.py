"""
Integration tests for context rule and widget CRUD operations.

Tests the version bump on update and the in-use guard on delete.

Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Policy Store persistence verification
"""

import pytest

from widgetchat.boundary.db.CRUD import context_rule_crud, widget_crud
from widgetchat.core.exceptions import RuleInUseError


class TestContextRuleCRUD:
    """Test suite for ContextRuleCRUD."""

    async def test_create_should_default_version_and_lists(self, test_async_db):
        # Act
        rule = await context_rule_crud.create(test_async_db, name="Support")

        # Assert
        assert rule.version == 1
        assert rule.is_active is True
        assert rule.excluded_topics == []
        assert rule.response_filters == []

    async def test_update_should_increment_version(self, test_async_db):
        # Arrange
        rule = await context_rule_crud.create(test_async_db, name="Support")

        # Act
        first = await context_rule_crud.update_rule(test_async_db, rule.id, excluded_topics=["pricing"])
        first_version = first.version
        second = await context_rule_crud.update_rule(test_async_db, rule.id, name="Sales")

        # Assert
        assert first_version == 2
        assert second.version == 3
        assert second.name == "Sales"
        assert second.excluded_topics == ["pricing"]

    async def test_update_should_ignore_explicit_version(self, test_async_db):
        rule = await context_rule_crud.create(test_async_db, name="Support")

        updated = await context_rule_crud.update_rule(test_async_db, rule.id, version=99, id="other")

        assert updated.version == 2
        assert updated.id == rule.id

    async def test_update_missing_rule_should_return_none(self, test_async_db):
        assert await context_rule_crud.update_rule(test_async_db, "missing", name="x") is None

    async def test_get_active_should_skip_inactive_rules(self, test_async_db):
        active = await context_rule_crud.create(test_async_db, name="On")
        inactive = await context_rule_crud.create(test_async_db, name="Off", is_active=False)

        assert (await context_rule_crud.get_active(test_async_db, active.id)).name == "On"
        assert await context_rule_crud.get_active(test_async_db, inactive.id) is None

    async def test_delete_rule_in_use_should_raise(self, test_async_db):
        # Arrange
        rule = await context_rule_crud.create(test_async_db, name="Bound")
        widget = await widget_crud.create(test_async_db, name="Widget", context_rule_id=rule.id)

        # Act / Assert
        with pytest.raises(RuleInUseError) as exc_info:
            await context_rule_crud.delete_rule(test_async_db, rule.id)

        assert exc_info.value.details["widget_ids"] == [widget.id]
        assert await context_rule_crud.exists(test_async_db, rule.id)

    async def test_delete_unused_rule_should_succeed(self, test_async_db):
        rule = await context_rule_crud.create(test_async_db, name="Free")

        assert await context_rule_crud.delete_rule(test_async_db, rule.id) is True
        assert await context_rule_crud.delete_rule(test_async_db, rule.id) is False
