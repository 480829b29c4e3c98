"""
Response filter.

Post-processes raw model output for a context rule. The excluded-topic block
runs first and replaces the whole response with a refusal; otherwise the
rule's filters apply in stored order. A failing filter is logged and skipped.

Dependencies: widgetchat.models.context_rule, widgetchat.core.exceptions
System role: Response Filter stage of the orchestration pipeline
"""

import logging
import re
from dataclasses import dataclass

from widgetchat.core.exceptions import FilterError
from widgetchat.models.context_rule import FilterType, ResponseFilterSpec

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"

_DOLLAR_TOKEN = re.compile(r"\$(\$|&|\d{1,2})")


@dataclass(frozen=True)
class FilterResult:
    """
    Outcome of filtering one response.

    Attributes:
        content: Final response text
        blocked_topic: Excluded topic that triggered the refusal, if any
        applied: Number of filters applied
        skipped: Number of filters skipped (invalid or failing)
    """

    content: str
    blocked_topic: str | None = None
    applied: int = 0
    skipped: int = 0


def find_excluded_topic(response: str, excluded_topics: list[str]) -> str | None:
    """Return the first excluded topic contained in the response (case-insensitive)."""
    lowered = response.lower()
    for topic in excluded_topics:
        if topic and topic.lower() in lowered:
            return topic
    return None


def to_python_replacement(replacement: str) -> str:
    """
    Translate `$`-style group tokens into `re.sub` template syntax.

    `$&` becomes the whole match, `$1`..`$99` the numbered group and `$$` a
    literal dollar sign. Python-style `\\1` and `\\g<name>` references pass
    through unchanged.
    """

    def _convert(match: re.Match) -> str:
        token = match.group(1)
        if token == "$":
            return "$"
        if token == "&":
            return r"\g<0>"
        return rf"\g<{int(token)}>"

    return _DOLLAR_TOKEN.sub(_convert, replacement)


def apply_filter(response: str, spec: ResponseFilterSpec, index: int = 0) -> str | None:
    """
    Apply a single filter.

    Returns:
        Filtered text, or None when the filter lacks its required fields
        or has an unknown type

    Raises:
        FilterError: If the filter is well-formed but cannot be applied
    """
    if spec.type == FilterType.REPLACE.value:
        if not spec.pattern or spec.replacement is None:
            return None
        try:
            return re.sub(
                spec.pattern,
                to_python_replacement(spec.replacement),
                response,
                flags=re.IGNORECASE,
            )
        except (re.error, IndexError) as e:
            raise FilterError(
                f"Invalid replace filter: {e}",
                filter_index=index,
                details={"pattern": spec.pattern},
            ) from e

    if spec.type == FilterType.APPEND.value:
        if not spec.text:
            return None
        return f"{response}{SEPARATOR}{spec.text}"

    if spec.type == FilterType.PREPEND.value:
        if not spec.text:
            return None
        return f"{spec.text}{SEPARATOR}{response}"

    return None


class ResponseFilter:
    """
    Apply excluded-topic blocking and ordered response filters.

    Args:
        refusal_message: Text that replaces a response touching an excluded topic
    """

    def __init__(self, refusal_message: str) -> None:
        self.refusal_message = refusal_message

    def apply(
        self,
        response: str,
        filters: list[ResponseFilterSpec],
        excluded_topics: list[str] | None = None,
    ) -> FilterResult:
        """
        Filter a raw model response.

        Args:
            response: Raw model output
            filters: Filters in stored order
            excluded_topics: Topics that trigger the refusal

        Returns:
            FilterResult with the final text
        """
        topic = find_excluded_topic(response, excluded_topics or [])
        if topic is not None:
            logger.info("Response blocked by excluded topic", extra={"topic": topic})
            return FilterResult(content=self.refusal_message, blocked_topic=topic)

        content = response
        applied = 0
        skipped = 0
        for index, spec in enumerate(filters):
            try:
                result = apply_filter(content, spec, index)
            except FilterError as e:
                logger.warning(f"Skipping response filter: {e}")
                skipped += 1
                continue
            if result is None:
                skipped += 1
                continue
            content = result
            applied += 1

        return FilterResult(content=content, applied=applied, skipped=skipped)
