"""
Keyword intent predicates that drive phase transitions.

These are case-insensitive substring checks, kept literal on purpose: phase
advancement and its tests depend on the exact keyword sets below. Note that
"ai" matches inside ordinary words ("said", "again"); that is part of the
contract.
"""

DIAGRAM_MENTION_KEYWORDS: tuple[str, ...] = ("diagram",)
DIAGRAM_AFFIRMATIVE_KEYWORDS: tuple[str, ...] = ("yes", "sure", "okay", "generate", "create")
DIAGRAM_EXPLICIT_PHRASE = "generate diagram"

SUGGESTION_USER_MENTION_KEYWORDS: tuple[str, ...] = ("suggest", "opportunities", "ai")
SUGGESTION_ASSISTANT_MENTION_KEYWORDS: tuple[str, ...] = ("suggest", "opportunities")
SUGGESTION_AFFIRMATIVE_KEYWORDS: tuple[str, ...] = ("yes", "sure", "okay", "please")
SUGGESTION_EXPLICIT_PHRASE = "generate suggestions"


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def wants_diagram(user_text: str, last_assistant_text: str = "") -> bool:
    """True when the user agrees to generate the workflow diagram.

    Either the user turn or the previous assistant turn mentions "diagram"
    and the user turn contains an affirmative token, or the user turn
    contains the phrase "generate diagram".
    """
    if _contains_any(user_text, (DIAGRAM_EXPLICIT_PHRASE,)):
        return True
    mentioned = _contains_any(user_text, DIAGRAM_MENTION_KEYWORDS) or _contains_any(
        last_assistant_text, DIAGRAM_MENTION_KEYWORDS
    )
    return mentioned and _contains_any(user_text, DIAGRAM_AFFIRMATIVE_KEYWORDS)


def wants_suggestions(user_text: str, last_assistant_text: str = "") -> bool:
    """True when the user asks for AI opportunity suggestions.

    The user turn mentions suggest/opportunities/ai, or the previous
    assistant turn mentions suggest/opportunities, and the user turn contains
    an affirmative token; or the user turn contains "generate suggestions".
    """
    if _contains_any(user_text, (SUGGESTION_EXPLICIT_PHRASE,)):
        return True
    mentioned = _contains_any(
        user_text, SUGGESTION_USER_MENTION_KEYWORDS
    ) or _contains_any(last_assistant_text, SUGGESTION_ASSISTANT_MENTION_KEYWORDS)
    return mentioned and _contains_any(user_text, SUGGESTION_AFFIRMATIVE_KEYWORDS)
