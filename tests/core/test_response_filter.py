"""
Tests for the response filter.

Covers excluded-topic refusal, ordered replace/append/prepend filters and
skipping of malformed or failing filters.

Dependencies: pytest, widgetchat.core.response_filter
System role: Response Filter verification
"""

import pytest

from widgetchat.core.exceptions import FilterError
from widgetchat.core.response_filter import ResponseFilter, apply_filter, find_excluded_topic
from widgetchat.models.context_rule import ResponseFilterSpec

REFUSAL = "I'm sorry, but I can't discuss that topic."


@pytest.fixture
def response_filter() -> ResponseFilter:
    return ResponseFilter(REFUSAL)


class TestExcludedTopics:
    """Test suite for the excluded-topic refusal."""

    def test_excluded_topic_should_replace_whole_response(self, response_filter):
        """A response mentioning an excluded topic becomes the refusal."""
        # Act
        result = response_filter.apply(
            "Our Pricing starts at $10",
            filters=[ResponseFilterSpec(type="append", text="Thanks!")],
            excluded_topics=["pricing"],
        )

        # Assert
        assert result.content == REFUSAL
        assert result.blocked_topic == "pricing"
        assert result.applied == 0

    def test_topic_match_should_be_case_insensitive(self):
        assert find_excluded_topic("LEGAL ADVICE here", ["legal advice"]) == "legal advice"

    def test_blank_topics_should_be_ignored(self):
        assert find_excluded_topic("anything", ["", "missing"]) is None


class TestOrderedFilters:
    """Test suite for replace/append/prepend filters."""

    def test_replace_should_be_global_and_case_insensitive(self, response_filter):
        # Arrange
        filters = [ResponseFilterSpec(type="replace", pattern="acme", replacement="ACME Corp")]

        # Act
        result = response_filter.apply("acme and Acme", filters)

        # Assert
        assert result.content == "ACME Corp and ACME Corp"
        assert result.applied == 1

    def test_filters_should_apply_in_stored_order(self, response_filter):
        # Arrange
        filters = [
            ResponseFilterSpec(type="append", text="Bye"),
            ResponseFilterSpec(type="prepend", text="Hi"),
            ResponseFilterSpec(type="replace", pattern="bye", replacement="Goodbye"),
        ]

        # Act
        result = response_filter.apply("Body", filters)

        # Assert
        assert result.content == "Hi\n\nBody\n\nGoodbye"
        assert result.applied == 3

    def test_invalid_pattern_should_be_skipped(self, response_filter):
        """A filter that cannot compile is logged and skipped; later filters still run."""
        # Arrange
        filters = [
            ResponseFilterSpec(type="replace", pattern="(unclosed", replacement="x"),
            ResponseFilterSpec(type="append", text="Tail"),
        ]

        # Act
        result = response_filter.apply("Body", filters)

        # Assert
        assert result.content == "Body\n\nTail"
        assert result.skipped == 1
        assert result.applied == 1

    def test_filters_missing_required_fields_should_be_skipped(self, response_filter):
        # Arrange
        filters = [
            ResponseFilterSpec(type="replace", pattern="Body"),
            ResponseFilterSpec(type="append"),
            ResponseFilterSpec(type="prepend", text=""),
            ResponseFilterSpec(type="shout"),
        ]

        # Act
        result = response_filter.apply("Body", filters)

        # Assert
        assert result.content == "Body"
        assert result.skipped == 4

    def test_empty_replacement_should_delete_matches(self):
        spec = ResponseFilterSpec(type="replace", pattern=r"\s*\[internal\]", replacement="")
        assert apply_filter("Answer [internal]", spec) == "Answer"

    def test_bad_group_reference_should_raise_filter_error(self):
        spec = ResponseFilterSpec(type="replace", pattern="a", replacement=r"\2")

        with pytest.raises(FilterError) as exc_info:
            apply_filter("abc", spec, index=4)

        assert exc_info.value.details["filter_index"] == 4

    @pytest.mark.parametrize(
        ("replacement", "expected"),
        [
            ("<$1>", "Order <42> shipped"),
            ("[$&]", "Order [#42] shipped"),
            ("$$$1", "Order $42 shipped"),
            (r"<\1>", "Order <42> shipped"),
        ],
    )
    def test_replacement_should_resolve_group_references(self, replacement, expected):
        spec = ResponseFilterSpec(type="replace", pattern=r"#(\d+)", replacement=replacement)

        assert apply_filter("Order #42 shipped", spec) == expected

    def test_dollar_reference_to_missing_group_should_raise_filter_error(self):
        spec = ResponseFilterSpec(type="replace", pattern="a", replacement="$3")

        with pytest.raises(FilterError):
            apply_filter("abc", spec)

    def test_no_filters_should_return_response_unchanged(self, response_filter):
        result = response_filter.apply("Plain", [])
        assert result.content == "Plain"
        assert result.blocked_topic is None
