"""
Structured extraction of workflow documents from assistant text.

The discovery interview ends with the model emitting a JSON summary of the
workflow somewhere in its reply. Extraction tries a prioritized list of
matchers and returns the first parsed match that passes validation. A reply with no
usable document is the normal outcome while discovery is still going, so
nothing here raises.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from workflowsage.models.workflow import (
    LIST_FIELDS,
    REQUIRED_FIELDS,
    TEXT_FIELDS,
    WorkflowDocument,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternMatcher:
    """A named regular expression whose first group captures a JSON object."""

    name: str
    pattern: re.Pattern[str]

    def find(self, text: str) -> Optional[str]:
        """Return the captured span, or None if the pattern does not match."""
        match = self.pattern.search(text)
        if match is None:
            return None
        return match.group(1)


# Ordered by priority: tagged fence, any fence, then a bare object that
# mentions the required field names in order.
DEFAULT_MATCHERS: tuple[PatternMatcher, ...] = (
    PatternMatcher("json_fence", re.compile(r"```json\s*({[\s\S]*?})\s*```")),
    PatternMatcher("any_fence", re.compile(r"```\s*({[\s\S]*?})\s*```")),
    PatternMatcher(
        "inline_object",
        re.compile(
            r'({[\s\S]*"title"[\s\S]*"start_event"[\s\S]*"steps"[\s\S]*'
            r'"people"[\s\S]*"systems"[\s\S]*"pain_points"[\s\S]*})'
        ),
    ),
)


def validate_workflow(candidate: Any) -> bool:
    """Check the shape of a parsed workflow document.

    All required fields must be present, title, start_event and end_event
    must be non-blank strings, and steps, people, systems and pain_points
    must be lists. References between steps and people/systems are not
    checked.
    """
    if not isinstance(candidate, dict):
        logger.warning("Workflow JSON is not an object")
        return False

    for name in REQUIRED_FIELDS:
        if name not in candidate:
            logger.warning(f"Workflow JSON missing required field: {name}")
            return False

    for name in TEXT_FIELDS:
        value = candidate[name]
        if not isinstance(value, str) or not value.strip():
            logger.warning(f"Workflow JSON {name} is not a non-empty string")
            return False

    for name in LIST_FIELDS:
        if not isinstance(candidate[name], list):
            logger.warning(f"Workflow JSON {name} is not an array")
            return False

    return True


class WorkflowExtractor:
    """Finds and validates a WorkflowDocument embedded in free-form text."""

    def __init__(self, matchers: tuple[PatternMatcher, ...] = DEFAULT_MATCHERS):
        self.matchers = matchers

    def candidates(self, text: str) -> Iterator[tuple[str, Any]]:
        """Yield (matcher name, parsed object) for every span that parses as JSON.

        Matchers are tried in priority order; a span that fails to parse is
        skipped.
        """
        for matcher in self.matchers:
            span = matcher.find(text)
            if span is None:
                continue
            try:
                parsed = json.loads(span.strip())
            except json.JSONDecodeError as e:
                logger.debug(f"Failed to parse JSON matched by {matcher.name}: {e}")
                continue
            yield matcher.name, parsed

    def try_extract(self, text: str) -> Optional[WorkflowDocument]:
        """Return the first candidate that passes validation, or None."""
        if not text:
            return None

        for name, candidate in self.candidates(text):
            if validate_workflow(candidate):
                logger.info(f"Extracted workflow document via {name}")
                return candidate
            logger.warning(f"Invalid workflow JSON structure matched by {name}")

        return None


_default_extractor = WorkflowExtractor()


def try_extract(text: str) -> Optional[WorkflowDocument]:
    """Extract a workflow document using the default matchers."""
    return _default_extractor.try_extract(text)
