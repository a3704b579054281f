# =============================================================================
# app/routers/dashboard.py - Dashboard Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import AuthUser, require_role, require_vendor, require_venue_owner
from core.models.dashboard import OwnerDashboardStats, RecentVenue, VendorDashboardStats
from core.models.user import UserRole
from core.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("")
def get_dashboard(
    user: AuthUser = Depends(require_role(UserRole.VENUE_OWNER, UserRole.VENDOR)),
):
    """Stats and recent activity for the caller's role."""
    return DashboardService.get_dashboard(user.id, user.role)


@router.get("/owner/stats", response_model=OwnerDashboardStats)
def get_owner_stats(user: AuthUser = Depends(require_venue_owner)):
    return DashboardService.get_owner_stats(user.id)


@router.get("/owner/recent-venues", response_model=list[RecentVenue])
def get_recent_venues(
    user: AuthUser = Depends(require_venue_owner),
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
):
    return DashboardService.get_recent_venues(user.id, limit)


@router.get("/vendor/stats", response_model=VendorDashboardStats)
def get_vendor_stats(user: AuthUser = Depends(require_vendor)):
    return DashboardService.get_vendor_stats(user.id)
