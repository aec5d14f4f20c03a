"""
Pytest Configuration and Fixtures

Shared fixtures: in-memory repositories, sample profiles and departments,
services wired to the fakes, and an API client with the service providers
overridden.
"""

from datetime import timedelta
from types import SimpleNamespace
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from helpdesk.domain.enums import TicketPriority, TicketStatus, UserRole
from helpdesk.domain.models import Department, Profile, Ticket
from helpdesk.services.attachment_service import AttachmentService
from helpdesk.services.blob_store import LocalBlobStore
from helpdesk.services.comment_service import CommentService
from helpdesk.services.department_service import DepartmentService
from helpdesk.services.profile_service import ProfileService
from helpdesk.services.sla_service import SlaService
from helpdesk.services.stats_service import StatsService
from helpdesk.services.ticket_service import TicketService
from helpdesk.utils.idgen import generate_ticket_id
from helpdesk.utils.time import utc_now

from .fakes import (
    FakeAdvisor, FakeAttachmentRepository, FakeCommentRepository,
    FakeDepartmentRepository, FakeHistoryRepository, FakeProfileRepository,
    FakeSlaRuleRepository, FakeTicketRepository, HR_DEPARTMENT, IT_DEPARTMENT,
    make_token, routing_reply
)


@pytest.fixture
def repos():
    return SimpleNamespace(
        profiles=FakeProfileRepository(),
        departments=FakeDepartmentRepository(),
        tickets=FakeTicketRepository(),
        comments=FakeCommentRepository(),
        attachments=FakeAttachmentRepository(),
        history=FakeHistoryRepository(),
        sla=FakeSlaRuleRepository(),
    )


@pytest.fixture
def departments(repos) -> Dict[str, Department]:
    now = utc_now()
    it = Department(id=IT_DEPARTMENT, name="IT Support", description="Hardware, software and network problems", created_at=now)
    hr = Department(id=HR_DEPARTMENT, name="Human Resources", description="Leave, payroll and contracts", created_at=now)
    repos.departments.create_department(it)
    repos.departments.create_department(hr)
    return {"it": it, "hr": hr}


@pytest.fixture
def profiles(repos, departments) -> Dict[str, Profile]:
    """admin, an IT agent, a requester without department, and an HR member"""
    now = utc_now()
    people = {
        "admin": Profile(id="USR-admin", full_name="Ada Admin", email="ada@example.com",
                         role=UserRole.ADMIN, created_at=now),
        "agent": Profile(id="USR-agent", full_name="Ivan IT", email="ivan@example.com",
                         role=UserRole.USER, department_id=IT_DEPARTMENT, created_at=now),
        "requester": Profile(id="USR-requester", full_name="Rita Requester", email="rita@example.com",
                             role=UserRole.USER, created_at=now),
        "outsider": Profile(id="USR-outsider", full_name="Hank HR", email="hank@example.com",
                            role=UserRole.USER, department_id=HR_DEPARTMENT, created_at=now),
    }
    for profile in people.values():
        repos.profiles.create_profile(profile)
    return people


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor(reply=routing_reply("IT Support"))


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(base_path=str(tmp_path / "blobs"), public_url="http://files.test/files")


@pytest.fixture
def make_ticket(repos, profiles) -> Callable[..., Ticket]:
    """Insert a ticket straight into the store"""

    def _make(**overrides) -> Ticket:
        now = utc_now()
        data = dict(
            id=generate_ticket_id(),
            ticket_number=repos.tickets.next_ticket_number(),
            title="Printer is broken",
            description="The printer on floor 2 shows a paper jam error",
            status=TicketStatus.NEW,
            priority=TicketPriority.NORMAL,
            tags=[],
            created_by=profiles["requester"].id,
            department_id=IT_DEPARTMENT,
            created_at=now - timedelta(hours=2),
            updated_at=now - timedelta(hours=2),
        )
        data.update(overrides)
        ticket = Ticket(**data)
        repos.tickets.create_ticket(ticket)
        return ticket

    return _make


@pytest.fixture
def services(repos, advisor, blob_store):
    return SimpleNamespace(
        tickets=TicketService(
            ticket_repo=repos.tickets,
            department_repo=repos.departments,
            profile_repo=repos.profiles,
            comment_repo=repos.comments,
            attachment_repo=repos.attachments,
            history_repo=repos.history,
            sla_repo=repos.sla,
            advisor=advisor,
            blob_store=blob_store,
        ),
        departments=DepartmentService(
            department_repo=repos.departments,
            profile_repo=repos.profiles,
            ticket_repo=repos.tickets,
            sla_repo=repos.sla,
        ),
        comments=CommentService(
            comment_repo=repos.comments,
            ticket_repo=repos.tickets,
            profile_repo=repos.profiles,
        ),
        attachments=AttachmentService(
            attachment_repo=repos.attachments,
            ticket_repo=repos.tickets,
            profile_repo=repos.profiles,
            blob_store=blob_store,
        ),
        profiles=ProfileService(profile_repo=repos.profiles, department_repo=repos.departments),
        sla=SlaService(sla_repo=repos.sla, department_repo=repos.departments),
        stats=StatsService(ticket_repo=repos.tickets, department_repo=repos.departments),
    )


@pytest.fixture
def client(services, profiles):
    """API client; the lifespan (index creation) is not run"""
    from helpdesk.main import app
    from helpdesk.api import deps

    overrides = {
        deps.get_ticket_service: lambda: services.tickets,
        deps.get_department_service: lambda: services.departments,
        deps.get_comment_service: lambda: services.comments,
        deps.get_attachment_service: lambda: services.attachments,
        deps.get_profile_service: lambda: services.profiles,
        deps.get_sla_service: lambda: services.sla,
        deps.get_stats_service: lambda: services.stats,
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[[Profile], Dict[str, str]]:
    """Authorization headers for a profile"""

    def _headers(profile: Profile) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(profile.id)}"}

    return _headers
