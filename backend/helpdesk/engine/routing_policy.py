"""Routing Policy - Turn routing advisor output into a trustworthy suggestion

The advisor is untrusted: its text may wrap the JSON in prose, omit fields,
or name a department that does not exist. Every such problem degrades to the
fallback suggestion instead of raising.
"""
import json
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from ..domain.models import Department, RoutingSuggestion, Ticket
from ..domain.enums import TicketPriority, parse_priority
from ..domain.errors import ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASONING = "AI analysis failed; the default department was assigned."
REPLY_FALLBACK = "A reply suggestion could not be generated."


class Advisor(Protocol):
    def generate(self, prompt: str) -> str:
        ...


@dataclass
class ParsedAdvice:
    """Tagged parse result: ``ok`` with fields, or not ``ok`` with an error"""
    ok: bool
    department_name: str = ""
    confidence_score: float = 0.0
    reasoning: str = ""
    suggested_priority: TicketPriority = TicketPriority.NORMAL
    suggested_tags: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ParsedAdvice":
        return cls(ok=False, error=error)


# ============================================================================
# Prompts
# ============================================================================

def build_routing_prompt(title: str, description: str, departments: Sequence[Department]) -> str:
    """Build the routing prompt listing every department"""
    department_list = "\n".join(
        f"- {d.name}: {d.description or 'No description'}" for d in departments
    )
    return f"""You are an intelligent ticket routing assistant for an internal support desk.

The following departments exist:
{department_list}

Incoming ticket:
Title: {title}
Description: {description}

Which department should handle this ticket? Also decide its urgency and tags.

Reply ONLY with a JSON object in this format (no other text):
{{
  "department_name": "department name",
  "confidence_score": 0.95,
  "reasoning": "Short explanation",
  "suggested_priority": "low|normal|high|urgent",
  "suggested_tags": ["tag1", "tag2"]
}}"""


def build_reply_prompt(ticket: Ticket, context: str) -> str:
    """Build the reply suggestion prompt"""
    return f"""You are a customer support agent. Suggest a professional, helpful reply to the following ticket.

Ticket: {ticket.title}
{ticket.description}

Context: {context or 'None'}

Write a polite, solution-oriented reply:"""


# ============================================================================
# Parsing
# ============================================================================

def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` region of text, or None.

    Braces inside JSON strings (including escaped quotes) are not counted.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def parse_advisor_output(text: str) -> ParsedAdvice:
    """Parse and validate advisor text. Never raises."""
    candidate = extract_json_object(text)
    if candidate is None:
        return ParsedAdvice.failure("no JSON object in advisor output")

    try:
        data = json.loads(candidate)
    except ValueError as e:
        return ParsedAdvice.failure(f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParsedAdvice.failure("advisor output is not an object")

    name = data.get("department_name")
    if not isinstance(name, str) or not name.strip():
        return ParsedAdvice.failure("department_name missing or not a string")

    score = data.get("confidence_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return ParsedAdvice.failure("confidence_score is not a number")
    if not 0.0 <= float(score) <= 1.0:
        return ParsedAdvice.failure("confidence_score out of range")

    priority = parse_priority(data.get("suggested_priority"))
    if priority is None:
        return ParsedAdvice.failure(f"unknown priority: {data.get('suggested_priority')!r}")

    tags = data.get("suggested_tags", [])
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return ParsedAdvice.failure("suggested_tags is not a list of strings")

    reasoning = data.get("reasoning", "")
    if reasoning is None:
        reasoning = ""
    if not isinstance(reasoning, str):
        return ParsedAdvice.failure("reasoning is not a string")

    return ParsedAdvice(
        ok=True,
        department_name=name.strip(),
        confidence_score=float(score),
        reasoning=reasoning,
        suggested_priority=priority,
        suggested_tags=[t.strip() for t in tags if t.strip()],
    )


def match_department(name: str, departments: Sequence[Department]) -> Optional[Department]:
    """Case-insensitive exact match on department name"""
    wanted = name.strip().lower()
    for department in departments:
        if department.name.strip().lower() == wanted:
            return department
    return None


def fallback_suggestion(departments: Sequence[Department]) -> RoutingSuggestion:
    """Default routing: the first department, neutral confidence"""
    first = departments[0]
    return RoutingSuggestion(
        department_id=first.id,
        department_name=first.name,
        confidence_score=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING,
        suggested_priority=TicketPriority.NORMAL,
        suggested_tags=[],
        is_fallback=True,
    )


# ============================================================================
# Policy
# ============================================================================

def suggest_routing(
    title: str,
    description: str,
    departments: Sequence[Department],
    advisor: Advisor
) -> RoutingSuggestion:
    """
    Suggest a department, priority and tags for a new ticket.

    Args:
        title: Ticket title
        description: Ticket description
        departments: Candidate departments; the first one is the fallback
        advisor: Text generator (may fail in any way)

    Returns:
        A suggestion naming one of the given departments

    Raises:
        ValidationError: departments is empty
    """
    if not departments:
        raise ValidationError("At least one department is required for routing")

    prompt = build_routing_prompt(title, description, departments)

    try:
        text = advisor.generate(prompt)
    except Exception as e:
        logger.warning(f"Routing advisor failed, using fallback: {e}")
        return fallback_suggestion(departments)

    parsed = parse_advisor_output(text)
    if not parsed.ok:
        logger.warning(f"Routing advisor output rejected, using fallback: {parsed.error}")
        return fallback_suggestion(departments)

    department = match_department(parsed.department_name, departments)
    if department is None:
        logger.warning(
            f"Routing advisor named unknown department {parsed.department_name!r}, using fallback"
        )
        return fallback_suggestion(departments)

    logger.info(
        f"Routing suggestion: {department.name} ({parsed.confidence_score:.2f})",
        extra={"department_id": department.id}
    )
    return RoutingSuggestion(
        department_id=department.id,
        department_name=department.name,
        confidence_score=parsed.confidence_score,
        reasoning=parsed.reasoning,
        suggested_priority=parsed.suggested_priority,
        suggested_tags=parsed.suggested_tags,
    )


def suggest_reply(ticket: Ticket, context: str, advisor: Advisor) -> str:
    """Draft a reply to a ticket; degrades to a fixed message on any failure"""
    try:
        text = advisor.generate(build_reply_prompt(ticket, context))
    except Exception as e:
        logger.warning(f"Reply suggestion failed: {e}", extra={"ticket_id": ticket.id})
        return REPLY_FALLBACK

    if not text or not text.strip():
        return REPLY_FALLBACK
    return text.strip()

