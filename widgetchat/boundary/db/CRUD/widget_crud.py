"""
Widget configuration CRUD operations.

Dependencies: sqlalchemy, widgetchat.boundary.db.models
System role: Widget binding lookup
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from widgetchat.boundary.db.CRUD.base_crud import BaseCRUD
from widgetchat.boundary.db.models.widget_model import WidgetConfigModel


class WidgetCRUD(BaseCRUD[WidgetConfigModel]):
    """CRUD operations for WidgetConfigModel."""

    def __init__(self) -> None:
        """Initialize WidgetCRUD with WidgetConfigModel."""
        super().__init__(WidgetConfigModel)

    async def get_by_context_rule(
        self,
        session: AsyncSession,
        context_rule_id: str,
    ) -> Sequence[WidgetConfigModel]:
        """
        Retrieve widgets bound to a context rule.

        Args:
            session: Async database session
            context_rule_id: Context rule id

        Returns:
            Widgets referencing the rule
        """
        stmt = select(WidgetConfigModel).where(
            WidgetConfigModel.context_rule_id == context_rule_id
        )
        result = await session.execute(stmt)
        return result.scalars().all()


widget_crud = WidgetCRUD()
