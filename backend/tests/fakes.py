"""
In-memory doubles for repositories and external adapters.

Each fake exposes the same methods as the pymongo-backed repository it
replaces, so services can be exercised without a database.
"""

import json
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

import jwt

from helpdesk.config.settings import settings
from helpdesk.domain.models import (
    Attachment, Comment, Department, HistoryEntry, Profile, SlaRule, Ticket
)
from helpdesk.domain.enums import OPEN_STATUSES, TicketPriority, TicketStatus, UserRole
from helpdesk.domain.errors import (
    AttachmentNotFoundError, BlobStoreError, CommentNotFoundError, ConcurrencyError,
    DepartmentNotFoundError, DuplicateDepartmentError, OpenAIError,
    ProfileNotFoundError, SlaRuleNotFoundError, TicketNotFoundError
)
from helpdesk.services.blob_store import LocalBlobStore
from helpdesk.utils.idgen import format_ticket_number
from helpdesk.utils.time import utc_now

IT_DEPARTMENT = "DEP-it"
HR_DEPARTMENT = "DEP-hr"


def _copy(model):
    return model.model_copy(deep=True)


class FakeProfileRepository:
    def __init__(self):
        self.profiles: Dict[str, Profile] = {}

    def create_profile(self, profile: Profile) -> Profile:
        self.profiles[profile.id] = _copy(profile)
        return profile

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        profile = self.profiles.get(profile_id)
        return _copy(profile) if profile else None

    def get_profile_or_raise(self, profile_id: str) -> Profile:
        profile = self.get_profile(profile_id)
        if not profile:
            raise ProfileNotFoundError.for_id(profile_id)
        return profile

    def get_profiles_by_ids(self, profile_ids: Iterable[str]) -> Dict[str, Profile]:
        return {pid: _copy(self.profiles[pid]) for pid in set(profile_ids) if pid in self.profiles}

    def list_profiles(self, department_id: Optional[str] = None, role: Optional[UserRole] = None) -> List[Profile]:
        result = [
            _copy(p) for p in self.profiles.values()
            if (not department_id or p.department_id == department_id)
            and (not role or p.role == role)
        ]
        return sorted(result, key=lambda p: p.full_name)

    def update_profile(self, profile_id: str, updates: Dict[str, Any]) -> Profile:
        if profile_id not in self.profiles:
            raise ProfileNotFoundError.for_id(profile_id)
        data = self.profiles[profile_id].model_dump()
        data.update(updates)
        data["updated_at"] = utc_now()
        self.profiles[profile_id] = Profile.model_validate(data)
        return _copy(self.profiles[profile_id])

    def detach_department(self, department_id: str, session=None) -> int:
        count = 0
        for profile in self.profiles.values():
            if profile.department_id == department_id:
                profile.department_id = None
                count += 1
        return count

    def count_profiles(self, department_id: Optional[str] = None) -> int:
        return len([p for p in self.profiles.values() if not department_id or p.department_id == department_id])


class FakeDepartmentRepository:
    def __init__(self):
        self.departments: Dict[str, Department] = {}

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            d.name.lower() == name.lower() and d.id != exclude_id
            for d in self.departments.values()
        )

    def create_department(self, department: Department) -> Department:
        if self._name_taken(department.name):
            raise DuplicateDepartmentError("A department with this name already exists")
        self.departments[department.id] = _copy(department)
        return department

    def get_department(self, department_id: str) -> Optional[Department]:
        department = self.departments.get(department_id)
        return _copy(department) if department else None

    def get_department_or_raise(self, department_id: str) -> Department:
        department = self.get_department(department_id)
        if not department:
            raise DepartmentNotFoundError.for_id(department_id)
        return department

    def list_departments(self) -> List[Department]:
        return sorted((_copy(d) for d in self.departments.values()), key=lambda d: d.name.lower())

    def update_department(self, department_id: str, updates: Dict[str, Any]) -> Department:
        if department_id not in self.departments:
            raise DepartmentNotFoundError.for_id(department_id)
        if "name" in updates and self._name_taken(updates["name"], exclude_id=department_id):
            raise DuplicateDepartmentError("A department with this name already exists")
        data = self.departments[department_id].model_dump()
        data.update(updates)
        self.departments[department_id] = Department.model_validate(data)
        return _copy(self.departments[department_id])

    def delete_department(self, department_id: str, session=None) -> bool:
        return self.departments.pop(department_id, None) is not None


class FakeTicketRepository:
    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}
        self.sequence = 0

    def next_ticket_number(self) -> str:
        self.sequence += 1
        return format_ticket_number(self.sequence)

    def create_ticket(self, ticket: Ticket) -> Ticket:
        self.tickets[ticket.id] = _copy(ticket)
        return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        return _copy(ticket) if ticket else None

    def get_ticket_or_raise(self, ticket_id: str) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        if not ticket:
            raise TicketNotFoundError.for_id(ticket_id)
        return ticket

    def update_ticket(self, ticket_id: str, updates: Dict[str, Any], expected_version: Optional[int] = None, session=None) -> Ticket:
        ticket = self.tickets.get(ticket_id)
        if not ticket:
            raise TicketNotFoundError.for_id(ticket_id)
        if expected_version is not None and ticket.version != expected_version:
            raise ConcurrencyError(f"Ticket {ticket_id} was modified")
        data = ticket.model_dump()
        data.update(updates)
        data["updated_at"] = utc_now()
        data["version"] = ticket.version + 1
        self.tickets[ticket_id] = Ticket.model_validate(data)
        return _copy(self.tickets[ticket_id])

    def delete_ticket(self, ticket_id: str, session=None) -> bool:
        return self.tickets.pop(ticket_id, None) is not None

    def _matching(
        self,
        statuses=None, priorities=None, department_ids=None, assigned_to=None,
        created_by=None, search=None, date_from=None, date_to=None
    ) -> List[Ticket]:
        result = []
        for t in self.tickets.values():
            if statuses and t.status not in statuses:
                continue
            if priorities and t.priority not in priorities:
                continue
            if department_ids and t.department_id not in department_ids:
                continue
            if assigned_to and t.assigned_to != assigned_to:
                continue
            if created_by and t.created_by != created_by:
                continue
            if search:
                needle = search.strip().lower()
                if not any(needle in s.lower() for s in (t.title, t.ticket_number, t.description)):
                    continue
            if date_from and t.created_at < date_from:
                continue
            if date_to and t.created_at > date_to:
                continue
            result.append(_copy(t))
        return result

    def list_tickets(self, sort_by: str = "created_at", sort_order: str = "desc", skip: int = 0, limit: int = 50, **filters) -> List[Ticket]:
        tickets = self._matching(**filters)
        tickets.sort(key=lambda t: getattr(t, sort_by, t.created_at), reverse=sort_order == "desc")
        return tickets[skip:skip + limit]

    def count_tickets(self, **filters) -> int:
        return len(self._matching(**filters))

    def count_for_department(self, department_id: str) -> int:
        return len([t for t in self.tickets.values() if t.department_id == department_id])

    def count_by_status(self) -> Dict[TicketStatus, int]:
        counts = {status: 0 for status in TicketStatus}
        for t in self.tickets.values():
            counts[t.status] += 1
        return counts

    def count_open_by_department(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for t in self.tickets.values():
            if t.status in OPEN_STATUSES:
                counts[t.department_id] = counts.get(t.department_id, 0) + 1
        return counts


class FakeCommentRepository:
    def __init__(self):
        self.comments: Dict[str, Comment] = {}

    def create_comment(self, comment: Comment) -> Comment:
        self.comments[comment.id] = _copy(comment)
        return comment

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        comment = self.comments.get(comment_id)
        return _copy(comment) if comment else None

    def get_comment_or_raise(self, comment_id: str) -> Comment:
        comment = self.get_comment(comment_id)
        if not comment:
            raise CommentNotFoundError.for_id(comment_id)
        return comment

    def get_comments_for_ticket(self, ticket_id: str) -> List[Comment]:
        return sorted(
            (_copy(c) for c in self.comments.values() if c.ticket_id == ticket_id),
            key=lambda c: c.created_at
        )

    def delete_comment(self, comment_id: str) -> bool:
        return self.comments.pop(comment_id, None) is not None

    def delete_for_ticket(self, ticket_id: str, session=None) -> int:
        ids = [cid for cid, c in self.comments.items() if c.ticket_id == ticket_id]
        for cid in ids:
            del self.comments[cid]
        return len(ids)


class FakeAttachmentRepository:
    def __init__(self):
        self.attachments: Dict[str, Attachment] = {}

    def create_attachment(self, attachment: Attachment) -> Attachment:
        self.attachments[attachment.id] = _copy(attachment)
        return attachment

    def get_attachment(self, attachment_id: str) -> Optional[Attachment]:
        attachment = self.attachments.get(attachment_id)
        return _copy(attachment) if attachment else None

    def get_attachment_or_raise(self, attachment_id: str) -> Attachment:
        attachment = self.get_attachment(attachment_id)
        if not attachment:
            raise AttachmentNotFoundError.for_id(attachment_id)
        return attachment

    def get_attachments_for_ticket(self, ticket_id: str) -> List[Attachment]:
        return sorted(
            (_copy(a) for a in self.attachments.values() if a.ticket_id == ticket_id),
            key=lambda a: a.created_at,
            reverse=True
        )

    def delete_attachment(self, attachment_id: str) -> bool:
        return self.attachments.pop(attachment_id, None) is not None

    def delete_for_ticket(self, ticket_id: str, session=None) -> int:
        ids = [aid for aid, a in self.attachments.items() if a.ticket_id == ticket_id]
        for aid in ids:
            del self.attachments[aid]
        return len(ids)


class FakeHistoryRepository:
    def __init__(self):
        self.entries: List[HistoryEntry] = []
        self.fail = False

    def create_entries(self, entries: List[HistoryEntry], session=None) -> List[HistoryEntry]:
        if self.fail:
            raise RuntimeError("history store unavailable")
        self.entries.extend(_copy(e) for e in entries)
        return entries

    def get_history_for_ticket(self, ticket_id: str, skip: int = 0, limit: int = 200) -> List[HistoryEntry]:
        entries = [_copy(e) for e in reversed(self.entries) if e.ticket_id == ticket_id]
        return entries[skip:skip + limit]

    def delete_for_ticket(self, ticket_id: str, session=None) -> int:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.ticket_id != ticket_id]
        return before - len(self.entries)

    def count_for_ticket(self, ticket_id: str) -> int:
        return len([e for e in self.entries if e.ticket_id == ticket_id])


class FakeSlaRuleRepository:
    def __init__(self):
        self.rules: Dict[str, SlaRule] = {}

    def list_rules(self, department_id: Optional[str] = None) -> List[SlaRule]:
        return [_copy(r) for r in self.rules.values() if not department_id or r.department_id == department_id]

    def get_rule(self, department_id: str, priority: TicketPriority) -> Optional[SlaRule]:
        for rule in self.rules.values():
            if rule.department_id == department_id and rule.priority == priority:
                return _copy(rule)
        return None

    def upsert_rule(self, rule: SlaRule) -> SlaRule:
        existing = self.get_rule(rule.department_id, rule.priority)
        if existing:
            rule = rule.model_copy(update={"id": existing.id})
        self.rules[rule.id] = _copy(rule)
        return rule

    def delete_rule(self, rule_id: str) -> None:
        if self.rules.pop(rule_id, None) is None:
            raise SlaRuleNotFoundError.for_id(rule_id)

    def delete_for_department(self, department_id: str, session=None) -> int:
        ids = [rid for rid, r in self.rules.items() if r.department_id == department_id]
        for rid in ids:
            del self.rules[rid]
        return len(ids)


class FakeAdvisor:
    """Routing advisor returning a canned reply, or raising when ``error`` is set"""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class UnavailableAdvisor(FakeAdvisor):
    def __init__(self):
        super().__init__(error=OpenAIError("AI service is not configured"))


class FailingBlobStore(LocalBlobStore):
    """Blob store whose removals always fail"""

    def remove(self, path: str) -> None:
        raise BlobStoreError("storage offline")


def routing_reply(department_name: str, confidence: float = 0.92, priority: str = "high", tags=None) -> str:
    """Advisor text recommending a department, wrapped in prose"""
    payload = {
        "department_name": department_name,
        "confidence_score": confidence,
        "reasoning": "Matches the department's area",
        "suggested_priority": priority,
        "suggested_tags": tags if tags is not None else ["hardware"],
    }
    return f"Here is my analysis:\n{json.dumps(payload)}\nLet me know if you need more."


def make_token(user_id: str, expires_in: timedelta = timedelta(hours=1), secret: Optional[str] = None) -> str:
    """HS256 token as the identity provider would issue it"""
    claims = {"sub": user_id, "exp": utc_now() + expires_in}
    return jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)
