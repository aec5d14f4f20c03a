"""
Seed Data Script - Creates default departments, SLA rules and the bootstrap admin
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from helpdesk.config.settings import settings
from helpdesk.domain.enums import TicketPriority, UserRole
from helpdesk.domain.models import Department, Profile, SlaRule
from helpdesk.repositories import DepartmentRepository, ProfileRepository, SlaRuleRepository
from helpdesk.repositories.mongo_client import create_indexes
from helpdesk.utils.idgen import generate_department_id, generate_sla_rule_id
from helpdesk.utils.time import utc_now

DEPARTMENTS = [
    ("IT Support", "Hardware, software, network and account problems", "#2563eb"),
    ("Human Resources", "Leave, payroll, contracts and onboarding", "#db2777"),
    ("Facilities", "Building, furniture, cleaning and access cards", "#16a34a"),
    ("Finance", "Invoices, expenses and purchase orders", "#ca8a04"),
]

# (response hours, resolution hours) per priority
DEFAULT_SLA_HOURS = {
    TicketPriority.URGENT: (1, 4),
    TicketPriority.HIGH: (4, 24),
    TicketPriority.NORMAL: (8, 72),
    TicketPriority.LOW: (24, 168),
}


def seed_departments(department_repo: DepartmentRepository, sla_repo: SlaRuleRepository) -> None:
    """Create the default departments with their SLA rules"""
    if department_repo.list_departments():
        print("Departments already exist. Skipping department seed.")
        return

    now = utc_now()
    for name, description, color in DEPARTMENTS:
        department = department_repo.create_department(Department(
            id=generate_department_id(),
            name=name,
            description=description,
            color=color,
            created_at=now,
        ))
        print(f"Created department: {name} ({department.id})")

        for priority, (response_hours, resolution_hours) in DEFAULT_SLA_HOURS.items():
            sla_repo.upsert_rule(SlaRule(
                id=generate_sla_rule_id(),
                department_id=department.id,
                priority=priority,
                response_time_hours=response_hours,
                resolution_time_hours=resolution_hours,
            ))
        print(f"  - {len(DEFAULT_SLA_HOURS)} SLA rules")


def seed_admin(profile_repo: ProfileRepository) -> None:
    """Create (or promote) the bootstrap admin profile"""
    admin_id = settings.bootstrap_admin_id
    if not admin_id:
        print("BOOTSTRAP_ADMIN_ID not set. Skipping admin profile.")
        return

    existing = profile_repo.get_profile(admin_id)
    if existing:
        if not existing.is_admin:
            profile_repo.update_profile(admin_id, {"role": UserRole.ADMIN.value})
            print(f"Promoted {admin_id} to admin")
        else:
            print(f"Admin profile {admin_id} already exists")
        return

    now = utc_now()
    profile_repo.create_profile(Profile(
        id=admin_id,
        full_name=settings.bootstrap_admin_name,
        role=UserRole.ADMIN,
        created_at=now,
        updated_at=now,
    ))
    print(f"Created admin profile: {admin_id}")


def main():
    print("=== Seeding database ===")
    print("-" * 40)

    # Create indexes first
    create_indexes()

    seed_departments(DepartmentRepository(), SlaRuleRepository())
    seed_admin(ProfileRepository())

    print("-" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
