"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'TKT', 'DEP', 'CMT')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('DEP')
        'DEP-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_ticket_id() -> str:
    """Generate ticket ID (opaque; the human-readable number is separate)"""
    return generate_id("TKT")


def generate_department_id() -> str:
    """Generate department ID"""
    return generate_id("DEP")


def generate_comment_id() -> str:
    """Generate comment ID"""
    return generate_id("CMT")


def generate_attachment_id() -> str:
    """Generate attachment ID"""
    return generate_id("ATT")


def generate_history_id() -> str:
    """Generate history entry ID"""
    return generate_id("HST")


def generate_sla_rule_id() -> str:
    """Generate SLA rule ID"""
    return generate_id("SLA")


def format_ticket_number(sequence: int) -> str:
    """Render a store sequence value as a ticket number"""
    return f"TKT-{sequence:06d}"


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
