"""Ticket service: creation with routing, updates with history, deletion"""
import os
from datetime import timedelta

import pytest

from helpdesk.domain.enums import SlaStatus, TicketPriority, TicketStatus
from helpdesk.domain.errors import (
    AdminRequiredError, ConcurrencyError, NothingToUpdateError,
    PermissionDeniedError, TicketNotFoundError, ValidationError
)
from helpdesk.domain.models import Attachment, Comment, Department, SlaRule
from helpdesk.engine.routing_policy import FALLBACK_CONFIDENCE
from helpdesk.utils.time import utc_now

from ..fakes import HR_DEPARTMENT, IT_DEPARTMENT, FakeAdvisor, UnavailableAdvisor


class TestCreateTicket:
    def test_routed_by_advisor(self, services, profiles, advisor):
        detail = services.tickets.create_ticket(
            actor=profiles["requester"],
            title="Printer broken",
            description="Floor 2 printer does not print",
        )
        assert detail.department_id == IT_DEPARTMENT
        assert detail.department.name == "IT Support"
        assert detail.priority == TicketPriority.HIGH
        assert detail.tags == ["hardware"]
        assert detail.status == TicketStatus.NEW
        assert detail.ai_confidence_score == pytest.approx(0.92)
        assert detail.creator.id == profiles["requester"].id
        assert detail.assignee is None
        assert detail.version == 1
        assert len(advisor.prompts) == 1

    def test_explicit_priority_and_tags_beat_the_suggestion(self, services, profiles):
        detail = services.tickets.create_ticket(
            actor=profiles["requester"],
            title="Printer broken",
            description="Floor 2 printer does not print",
            priority=TicketPriority.LOW,
            tags=["floor-2"],
        )
        assert detail.priority == TicketPriority.LOW
        assert detail.tags == ["floor-2"]

    def test_explicit_department_skips_the_advisor(self, services, profiles, advisor):
        detail = services.tickets.create_ticket(
            actor=profiles["requester"],
            title="Payslip missing",
            description="March payslip not received",
            department_id=HR_DEPARTMENT,
        )
        assert detail.department_id == HR_DEPARTMENT
        assert detail.priority == TicketPriority.NORMAL
        assert detail.ai_confidence_score is None
        assert advisor.prompts == []

    def test_unknown_department_is_rejected(self, services, profiles):
        with pytest.raises(ValidationError):
            services.tickets.create_ticket(
                actor=profiles["requester"], title="t", description="d", department_id="DEP-nope"
            )

    def test_advisor_outage_falls_back(self, services, profiles):
        services.tickets.advisor = UnavailableAdvisor()
        detail = services.tickets.create_ticket(
            actor=profiles["requester"], title="Lamp", description="Flickering lamp"
        )
        # "Human Resources" sorts before "IT Support"
        assert detail.department_id == HR_DEPARTMENT
        assert detail.ai_confidence_score == FALLBACK_CONFIDENCE
        assert detail.priority == TicketPriority.NORMAL

    @pytest.mark.parametrize("title, description", [("", "d"), ("  ", "d"), ("t", ""), ("t", " \n")])
    def test_title_and_description_required(self, services, profiles, title, description):
        with pytest.raises(ValidationError):
            services.tickets.create_ticket(actor=profiles["requester"], title=title, description=description)

    def test_ticket_numbers_are_unique(self, services, profiles):
        numbers = {
            services.tickets.create_ticket(
                actor=profiles["requester"], title=f"t{i}", description="d", department_id=IT_DEPARTMENT
            ).ticket_number
            for i in range(5)
        }
        assert len(numbers) == 5


class TestUpdateTicket:
    def test_records_one_history_entry_per_changed_field(self, services, repos, profiles, make_ticket):
        ticket = make_ticket()
        updated = services.tickets.update_ticket(
            ticket.id,
            {"status": TicketStatus.IN_PROGRESS, "assigned_to": profiles["agent"].id, "title": ticket.title},
            profiles["agent"],
        )
        assert updated.status == TicketStatus.IN_PROGRESS
        assert updated.assignee.id == profiles["agent"].id
        assert updated.version == 2

        history = services.tickets.get_history(ticket.id, profiles["agent"])
        assert {(h.field_name, h.old_value, h.new_value) for h in history} == {
            ("status", "new", "in_progress"),
            ("assigned_to", None, profiles["agent"].id),
        }
        assert all(h.changed_by == profiles["agent"].id for h in history)

    def test_resolving_sets_resolved_at_and_reopening_clears_it(self, services, profiles, make_ticket):
        ticket = make_ticket()
        resolved = services.tickets.update_ticket(ticket.id, {"status": TicketStatus.RESOLVED}, profiles["agent"])
        assert resolved.resolved_at is not None
        assert resolved.time_tracking.is_resolved

        closed = services.tickets.update_ticket(ticket.id, {"status": TicketStatus.CLOSED}, profiles["agent"])
        assert closed.resolved_at == resolved.resolved_at

        reopened = services.tickets.update_ticket(ticket.id, {"status": TicketStatus.NEW}, profiles["agent"])
        assert reopened.resolved_at is None

    def test_nothing_to_update(self, services, repos, profiles, make_ticket):
        ticket = make_ticket()
        with pytest.raises(NothingToUpdateError):
            services.tickets.update_ticket(ticket.id, {"status": TicketStatus.NEW}, profiles["agent"])
        assert repos.history.entries == []

    def test_outsider_cannot_update(self, services, profiles, make_ticket):
        ticket = make_ticket()
        with pytest.raises(PermissionDeniedError):
            services.tickets.update_ticket(ticket.id, {"priority": TicketPriority.URGENT}, profiles["outsider"])

    def test_creator_can_update(self, services, profiles, make_ticket):
        ticket = make_ticket()
        updated = services.tickets.update_ticket(
            ticket.id, {"description": "Also the scanner"}, profiles["requester"]
        )
        assert updated.description == "Also the scanner"

    def test_stale_version_conflicts(self, services, profiles, make_ticket):
        ticket = make_ticket()
        services.tickets.update_ticket(ticket.id, {"priority": TicketPriority.HIGH}, profiles["agent"])
        with pytest.raises(ConcurrencyError):
            services.tickets.update_ticket(
                ticket.id, {"priority": TicketPriority.LOW}, profiles["agent"], expected_version=1
            )

    def test_current_version_succeeds(self, services, profiles, make_ticket):
        ticket = make_ticket()
        updated = services.tickets.update_ticket(
            ticket.id, {"priority": TicketPriority.HIGH}, profiles["agent"], expected_version=1
        )
        assert updated.version == 2

    def test_unknown_assignee_is_rejected(self, services, profiles, make_ticket):
        ticket = make_ticket()
        with pytest.raises(ValidationError):
            services.tickets.update_ticket(ticket.id, {"assigned_to": "USR-ghost"}, profiles["agent"])

    def test_unknown_department_is_rejected(self, services, profiles, make_ticket):
        ticket = make_ticket()
        with pytest.raises(ValidationError):
            services.tickets.update_ticket(ticket.id, {"department_id": "DEP-ghost"}, profiles["agent"])

    def test_history_failure_does_not_undo_the_update(self, services, repos, profiles, make_ticket):
        ticket = make_ticket()
        repos.history.fail = True
        updated = services.tickets.update_ticket(ticket.id, {"priority": TicketPriority.URGENT}, profiles["agent"])
        assert updated.priority == TicketPriority.URGENT
        assert repos.tickets.get_ticket(ticket.id).priority == TicketPriority.URGENT

    def test_missing_ticket(self, services, profiles):
        with pytest.raises(TicketNotFoundError):
            services.tickets.update_ticket("TKT-ghost", {"title": "x"}, profiles["admin"])


class TestReads:
    def test_time_tracking_uses_sla_rule(self, services, repos, profiles, make_ticket):
        repos.sla.upsert_rule(SlaRule(
            id="SLA-1", department_id=IT_DEPARTMENT, priority=TicketPriority.NORMAL,
            response_time_hours=1, resolution_time_hours=2,
        ))
        ticket = make_ticket(created_at=utc_now() - timedelta(hours=3))
        detail = services.tickets.get_ticket(ticket.id, profiles["outsider"])
        assert detail.time_tracking.sla_status == SlaStatus.BREACHED
        assert detail.time_tracking.elapsed_seconds >= 3 * 3600

    def test_list_filters_and_counts(self, services, profiles, make_ticket):
        make_ticket(title="VPN down", priority=TicketPriority.URGENT)
        make_ticket(title="Printer jam")
        make_ticket(title="Payslip", department_id=HR_DEPARTMENT, status=TicketStatus.CLOSED)

        items, total = services.tickets.list_tickets(profiles["agent"], department_id=IT_DEPARTMENT)
        assert total == 2
        assert {t.title for t in items} == {"VPN down", "Printer jam"}

        items, total = services.tickets.list_tickets(profiles["agent"], search="vpn")
        assert [t.title for t in items] == ["VPN down"]

        items, total = services.tickets.list_tickets(profiles["agent"], statuses=[TicketStatus.CLOSED])
        assert total == 1
        assert items[0].department.name == "Human Resources"

    def test_list_pages(self, services, profiles, make_ticket):
        for i in range(5):
            make_ticket(title=f"t{i}")
        items, total = services.tickets.list_tickets(profiles["agent"], skip=3, limit=2)
        assert total == 5
        assert len(items) == 2


class TestRoutingSuggestion:
    def test_missing_parameters(self, services):
        with pytest.raises(ValidationError) as exc:
            services.tickets.suggest_routing("", "something")
        assert "Missing parameters" in exc.value.message

    def test_candidate_subset_sets_fallback(self, services, departments):
        services.tickets.advisor = UnavailableAdvisor()
        suggestion = services.tickets.suggest_routing("t", "d", department_ids=[IT_DEPARTMENT, HR_DEPARTMENT])
        assert suggestion.department_id == IT_DEPARTMENT
        assert suggestion.is_fallback

    def test_fallback_follows_given_order(self, services, departments):
        services.tickets.advisor = UnavailableAdvisor()
        suggestion = services.tickets.suggest_routing("t", "d", department_ids=[HR_DEPARTMENT, IT_DEPARTMENT])
        assert suggestion.department_id == HR_DEPARTMENT
        assert suggestion.is_fallback

    def test_unknown_candidate_rejected(self, services, departments, advisor):
        with pytest.raises(ValidationError) as exc:
            services.tickets.suggest_routing("t", "d", department_ids=[IT_DEPARTMENT, "DEP-ghost"])
        assert exc.value.details["unknown"] == ["DEP-ghost"]
        assert advisor.prompts == []

    def test_no_departments(self, services, repos):
        repos.departments.departments.clear()
        with pytest.raises(ValidationError):
            services.tickets.suggest_routing("t", "d")


class TestDeleteTicket:
    def test_admin_cascades_children(self, services, repos, profiles, make_ticket, blob_store):
        ticket = make_ticket()
        url = blob_store.upload(f"{ticket.id}/ATT-1_log.txt", b"log")
        now = utc_now()
        repos.comments.create_comment(Comment(
            id="CMT-1", ticket_id=ticket.id, user_id=profiles["agent"].id, comment="On it", created_at=now
        ))
        repos.attachments.create_attachment(Attachment(
            id="ATT-1", ticket_id=ticket.id, file_name="log.txt", file_url=url,
            file_size=3, uploaded_by=profiles["agent"].id, created_at=now,
        ))
        services.tickets.update_ticket(ticket.id, {"priority": TicketPriority.HIGH}, profiles["agent"])

        services.tickets.delete_ticket(ticket.id, profiles["admin"])

        assert repos.tickets.get_ticket(ticket.id) is None
        assert repos.comments.get_comments_for_ticket(ticket.id) == []
        assert repos.attachments.get_attachments_for_ticket(ticket.id) == []
        assert repos.history.count_for_ticket(ticket.id) == 0
        assert not os.path.exists(blob_store._full_path(f"{ticket.id}/ATT-1_log.txt"))

    def test_keeps_files_outside_the_ticket_folder(self, services, repos, profiles, make_ticket, blob_store):
        other = make_ticket()
        ticket = make_ticket()
        other_path = f"{other.id}/ATT-9_report.pdf"
        other_url = blob_store.upload(other_path, b"pdf")
        for attachment_id, url in (("ATT-1", other_url), ("ATT-2", f"https://elsewhere.example/{other_path}")):
            repos.attachments.create_attachment(Attachment(
                id=attachment_id, ticket_id=ticket.id, file_name="report.pdf", file_url=url,
                file_size=3, uploaded_by=profiles["agent"].id, created_at=utc_now(),
            ))

        services.tickets.delete_ticket(ticket.id, profiles["admin"])

        assert repos.attachments.get_attachments_for_ticket(ticket.id) == []
        assert os.path.exists(blob_store._full_path(other_path))

    def test_non_admin_cannot_delete(self, services, repos, profiles, make_ticket):
        ticket = make_ticket()
        with pytest.raises(AdminRequiredError):
            services.tickets.delete_ticket(ticket.id, profiles["requester"])
        assert repos.tickets.get_ticket(ticket.id) is not None

    def test_missing_ticket(self, services, profiles):
        with pytest.raises(TicketNotFoundError):
            services.tickets.delete_ticket("TKT-ghost", profiles["admin"])


def test_reopening_a_resolved_ticket_records_one_status_entry(services, repos, profiles, make_ticket):
    ticket = make_ticket(status=TicketStatus.RESOLVED, resolved_at=utc_now())
    services.tickets.update_ticket(ticket.id, {"status": TicketStatus.NEW}, profiles["agent"])
    history = repos.history.get_history_for_ticket(ticket.id)
    assert [(h.field_name, h.old_value, h.new_value) for h in history] == [("status", "resolved", "new")]


def test_routing_with_short_department_names_and_legacy_priority(services, repos, profiles):
    repos.departments.departments.clear()
    repos.departments.create_department(Department(id="A", name="IT"))
    repos.departments.create_department(Department(id="B", name="HR"))
    services.tickets.advisor = FakeAdvisor(reply=(
        '{"department_name":"IT","confidence_score":0.92,'
        '"suggested_priority":"yuksek","suggested_tags":["hardware"]}'
    ))

    detail = services.tickets.create_ticket(
        actor=profiles["requester"], title="Printer broken", description="..."
    )
    assert detail.department_id == "A"
    assert detail.priority == TicketPriority.HIGH
    assert detail.tags == ["hardware"]
    assert detail.status == TicketStatus.NEW
