"""
Policy Store.

Read side of context rules for the orchestration pipeline. Only active rules
resolve; a missing, inactive or unreadable rule resolves to None so message
processing degrades to unfiltered behavior.

Dependencies: sqlalchemy, widgetchat.boundary.db
System role: RuleResolved stage of the orchestration pipeline
"""

import logging

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from widgetchat.boundary.db.CRUD.context_rule_crud import context_rule_crud
from widgetchat.boundary.db.CRUD.widget_crud import widget_crud
from widgetchat.boundary.db.models.context_rule_model import ContextRuleModel
from widgetchat.core.exceptions import PolicyNotFoundError
from widgetchat.models.context_rule import ContextRule, ResponseFilterSpec

logger = logging.getLogger(__name__)


def parse_filters(rule_id: str, items: list | None) -> list[ResponseFilterSpec]:
    """
    Validate stored filters one at a time.

    Entries that are not objects with a `type`, or whose fields have the
    wrong shape, are dropped with a warning; the rest keep their order.
    """
    filters = []
    for index, item in enumerate(items or []):
        if not isinstance(item, dict) or not item.get("type"):
            continue
        try:
            filters.append(ResponseFilterSpec.model_validate(item))
        except SchemaError as e:
            logger.warning(
                "Dropping malformed response filter",
                extra={"rule_id": rule_id, "filter_index": index, "error": str(e)},
            )
    return filters


def rule_from_row(row: ContextRuleModel) -> ContextRule:
    """Build the domain rule from its ORM row."""
    filters = parse_filters(row.id, row.response_filters)
    return ContextRule(
        id=row.id,
        name=row.name,
        is_active=row.is_active,
        keywords=[str(k) for k in (row.keywords or [])],
        excluded_topics=[str(t) for t in (row.excluded_topics or [])],
        prompt_template=row.prompt_template,
        response_filters=filters,
        use_knowledge_bases=row.use_knowledge_bases,
        knowledge_base_ids=[str(k) for k in (row.knowledge_base_ids or [])],
        preferred_model=row.preferred_model,
        version=row.version,
    )


class PolicyStore:
    """Resolve active context rules."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _load(self, db: AsyncSession, rule_id: str) -> ContextRule:
        row = await context_rule_crud.get_active(db, rule_id)
        if row is None:
            raise PolicyNotFoundError(rule_id)
        return rule_from_row(row)

    async def resolve(self, rule_id: str | None) -> ContextRule | None:
        """
        Resolve an active rule by id.

        Returns:
            ContextRule, or None when missing, inactive or unreadable
        """
        if not rule_id:
            return None
        try:
            async with self._session_factory() as db:
                return await self._load(db, rule_id)
        except PolicyNotFoundError as e:
            logger.info(str(e))
        except (SQLAlchemyError, SchemaError) as e:
            logger.warning(
                "Context rule lookup failed, continuing without rule",
                extra={"rule_id": rule_id, "error": str(e)},
            )
        return None

    async def resolve_for_widget(self, widget_id: str | None) -> ContextRule | None:
        """Follow a widget binding to its active rule."""
        if not widget_id:
            return None
        try:
            async with self._session_factory() as db:
                widget = await widget_crud.get_by_id(db, widget_id)
                if widget is None or not widget.context_rule_id:
                    return None
                return await self._load(db, widget.context_rule_id)
        except PolicyNotFoundError as e:
            logger.info(str(e))
        except (SQLAlchemyError, SchemaError) as e:
            logger.warning(
                "Widget rule lookup failed, continuing without rule",
                extra={"widget_id": widget_id, "error": str(e)},
            )
        return None
