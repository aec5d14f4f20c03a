"""API Routes module"""
from fastapi import APIRouter

from .tickets import router as tickets_router
from .departments import router as departments_router
from .routing import router as routing_router
from .profiles import router as profiles_router
from .sla_rules import router as sla_rules_router
from .stats import router as stats_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(tickets_router, tags=["Tickets"])
api_router.include_router(departments_router, prefix="/departments", tags=["Departments"])
api_router.include_router(routing_router, tags=["AI Routing"])
api_router.include_router(profiles_router, tags=["Profiles"])
api_router.include_router(sla_rules_router, prefix="/sla-rules", tags=["SLA Rules"])
api_router.include_router(stats_router, prefix="/stats", tags=["Statistics"])

__all__ = ["api_router"]
