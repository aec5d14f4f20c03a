"""Profiles, SLA rules and dashboard statistics"""
from datetime import timedelta

import pytest

from helpdesk.domain.enums import TicketPriority, TicketStatus, UserRole
from helpdesk.domain.errors import (
    AdminRequiredError, AuthenticationError, ProfileNotFoundError,
    SlaRuleNotFoundError, ValidationError
)
from helpdesk.utils.time import utc_now

from ..fakes import HR_DEPARTMENT, IT_DEPARTMENT


class TestProfiles:
    def test_resolve_caller(self, services, profiles):
        assert services.profiles.resolve_caller("USR-agent").department_id == IT_DEPARTMENT

    def test_unknown_caller_is_unauthenticated(self, services, profiles):
        with pytest.raises(AuthenticationError):
            services.profiles.resolve_caller("USR-ghost")

    def test_update_own_profile(self, services, profiles):
        updated = services.profiles.update_own_profile(profiles["agent"], full_name=" Ivan I. ", avatar_url=None)
        assert updated.full_name == "Ivan I."
        assert updated.avatar_url is None
        assert updated.role == UserRole.USER

    def test_update_own_profile_needs_a_field(self, services, profiles):
        with pytest.raises(ValidationError):
            services.profiles.update_own_profile(profiles["agent"])

    def test_admin_moves_user_between_departments(self, services, profiles):
        moved = services.profiles.update_user(
            profiles["agent"].id, profiles["admin"], role=UserRole.DEPARTMENT_MANAGER, department_id=HR_DEPARTMENT
        )
        assert moved.role == UserRole.DEPARTMENT_MANAGER
        assert moved.department_id == HR_DEPARTMENT
        # The next request sees the new department
        assert services.profiles.resolve_caller(profiles["agent"].id).department_id == HR_DEPARTMENT

    def test_admin_detaches_user(self, services, profiles):
        detached = services.profiles.update_user(profiles["agent"].id, profiles["admin"], department_id=None)
        assert detached.department_id is None

    def test_unknown_department(self, services, profiles):
        with pytest.raises(ValidationError):
            services.profiles.update_user(profiles["agent"].id, profiles["admin"], department_id="DEP-ghost")

    def test_unknown_user(self, services, profiles):
        with pytest.raises(ProfileNotFoundError):
            services.profiles.update_user("USR-ghost", profiles["admin"], role=UserRole.ADMIN)

    def test_non_admin_cannot_manage_users(self, services, profiles):
        with pytest.raises(AdminRequiredError):
            services.profiles.update_user(profiles["outsider"].id, profiles["agent"], role=UserRole.ADMIN)
        with pytest.raises(AdminRequiredError):
            services.profiles.list_users(profiles["agent"])

    def test_list_users_by_department(self, services, profiles):
        users = services.profiles.list_users(profiles["admin"], department_id=IT_DEPARTMENT)
        assert [u.id for u in users] == [profiles["agent"].id]


class TestSlaRules:
    def test_save_replaces_existing_rule(self, services, repos, profiles):
        first = services.sla.save_rule(profiles["admin"], IT_DEPARTMENT, TicketPriority.HIGH, 1, 8)
        second = services.sla.save_rule(profiles["admin"], IT_DEPARTMENT, TicketPriority.HIGH, 2, 6)
        assert second.id == first.id
        rules = services.sla.list_rules(profiles["agent"], department_id=IT_DEPARTMENT)
        assert len(rules) == 1
        assert rules[0].resolution_time_hours == 6

    def test_save_validates(self, services, profiles):
        with pytest.raises(ValidationError):
            services.sla.save_rule(profiles["admin"], IT_DEPARTMENT, TicketPriority.HIGH, 0, 8)
        with pytest.raises(ValidationError):
            services.sla.save_rule(profiles["admin"], "DEP-ghost", TicketPriority.HIGH, 1, 8)

    def test_admin_only(self, services, profiles):
        with pytest.raises(AdminRequiredError):
            services.sla.save_rule(profiles["agent"], IT_DEPARTMENT, TicketPriority.HIGH, 1, 8)

    def test_delete(self, services, profiles):
        rule = services.sla.save_rule(profiles["admin"], IT_DEPARTMENT, TicketPriority.LOW, 4, 48)
        services.sla.delete_rule(rule.id, profiles["admin"])
        with pytest.raises(SlaRuleNotFoundError):
            services.sla.delete_rule(rule.id, profiles["admin"])


class TestDashboard:
    def test_counts(self, services, profiles, make_ticket):
        now = utc_now()
        make_ticket()
        make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to=profiles["agent"].id)
        make_ticket(
            status=TicketStatus.RESOLVED, department_id=HR_DEPARTMENT,
            created_at=now - timedelta(hours=4), resolved_at=now - timedelta(hours=2),
        )
        make_ticket(created_by=profiles["agent"].id, status=TicketStatus.CLOSED,
                    created_at=now - timedelta(hours=2), resolved_at=now)

        stats = services.stats.get_dashboard(profiles["agent"])
        assert stats.total_tickets == 4
        assert stats.open_tickets == 2
        assert stats.by_status["resolved"] == 1
        assert stats.by_status["pending"] == 0
        assert stats.my_tickets == 1
        assert stats.assigned_to_me == 1
        assert stats.average_resolution_seconds == pytest.approx(2 * 3600, abs=2)
        assert stats.department_breakdown is None

    def test_admin_breakdown(self, services, profiles, make_ticket):
        make_ticket()
        make_ticket(department_id=HR_DEPARTMENT, status=TicketStatus.CLOSED, resolved_at=utc_now())
        stats = services.stats.get_dashboard(profiles["admin"])
        by_department = {d.department_id: d.open_tickets for d in stats.department_breakdown}
        assert by_department == {IT_DEPARTMENT: 1, HR_DEPARTMENT: 0}

    def test_empty_store(self, services, profiles):
        stats = services.stats.get_dashboard(profiles["agent"])
        assert stats.total_tickets == 0
        assert stats.average_resolution_seconds is None
