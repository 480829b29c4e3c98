"""
Context rule CRUD operations.

Adds the Policy Store write invariants on top of BaseCRUD: every update
increments the rule version, and a rule referenced by a widget cannot be
deleted.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Policy Store persistence operations
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.CRUD.widget_crud import widget_crud
from widgetchat.boundary.db.models.context_rule_model import ContextRuleModel
from widgetchat.core.exceptions import RuleInUseError

_IMMUTABLE_FIELDS = {"id", "version", "created_at", "updated_at"}


class ContextRuleCRUD(BaseCRUD[ContextRuleModel]):
    """CRUD operations for ContextRuleModel."""

    def __init__(self) -> None:
        """Initialize ContextRuleCRUD with ContextRuleModel."""
        super().__init__(ContextRuleModel)

    async def get_active(self, session: AsyncSession, id: str) -> ContextRuleModel | None:
        """
        Retrieve a rule only if it is active.

        Args:
            session: Async database session
            id: Context rule id

        Returns:
            Active rule, None when missing or inactive
        """
        stmt = select(ContextRuleModel).where(
            ContextRuleModel.id == id,
            ContextRuleModel.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_rule(
        self,
        session: AsyncSession,
        id: str,
        **kwargs,
    ) -> ContextRuleModel | None:
        """
        Update rule fields and bump its version.

        Args:
            session: Async database session
            id: Context rule id
            **kwargs: Fields to update (id/version/timestamps are ignored)

        Returns:
            Updated rule if found, None otherwise
        """
        values = {k: v for k, v in kwargs.items() if k not in _IMMUTABLE_FIELDS}
        stmt = (
            update(ContextRuleModel)
            .where(ContextRuleModel.id == id)
            .values(**values, version=ContextRuleModel.version + 1)
            .returning(ContextRuleModel)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_rule(self, session: AsyncSession, id: str) -> bool:
        """
        Delete a rule unless a widget still references it.

        Args:
            session: Async database session
            id: Context rule id

        Returns:
            True if deleted, False if not found

        Raises:
            RuleInUseError: If one or more widgets are bound to the rule
        """
        widgets = await widget_crud.get_by_context_rule(session, id)
        if widgets:
            raise RuleInUseError(id, [w.id for w in widgets])
        return await self.delete_by_id(session, id)


context_rule_crud = ContextRuleCRUD()
