"""
Prompt composition.

Builds the final model prompt from the user message, the context rule's
template, retrieved knowledge and the rule's excluded topics.

Dependencies: widgetchat.models
System role: ContextGathered stage of the orchestration pipeline
"""

import re
from typing import Any

from widgetchat.models.context_rule import ContextRule
from widgetchat.models.knowledge import KnowledgeSnippet

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

CONTEXT_HEADER = "Context information:"


def render_template(template: str, variables: dict[str, Any]) -> str:
    """
    Substitute `{{name}}` placeholders.

    Every occurrence of a known name is replaced; unknown placeholders are
    left untouched. Substituted values are not re-scanned.
    """

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)


def format_knowledge(snippets: list[KnowledgeSnippet]) -> str:
    return "\n\n".join(snippet.content for snippet in snippets)


def build_prompt(
    message: str,
    rule: ContextRule | None = None,
    snippets: list[KnowledgeSnippet] | None = None,
    variables: dict[str, Any] | None = None,
) -> str:
    """
    Compose the prompt sent to the model.

    Order of composition:
        1. Rule template with `{{message}}` substituted, else the raw message
        2. Retrieved knowledge prepended under "Context information:"
        3. Excluded-topics instruction prepended when the rule defines topics

    Args:
        message: Raw user message
        rule: Resolved context rule, None when no rule applies
        snippets: Retrieved knowledge, empty when nothing matched
        variables: Extra template variables

    Returns:
        Final prompt text
    """
    if rule is not None and rule.prompt_template:
        values = dict(variables or {})
        values["message"] = message
        prompt = render_template(rule.prompt_template, values)
    else:
        prompt = message

    if snippets:
        prompt = f"{CONTEXT_HEADER}\n{format_knowledge(snippets)}\n\n{prompt}"

    if rule is not None:
        topics = [t for t in rule.excluded_topics if t]
        if topics:
            prompt = f"Please do not discuss these topics: {', '.join(topics)}.\n\n{prompt}"

    return prompt
