"""
Per-role dashboard payloads, computed from a state snapshot with the same
selectors the client renders from.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from ..auth.access import get_role_name
from ..navigation.composer import get_dashboard_component
from ..schemas.enums import Role
from ..selectors import buildings, invoices, materials, orders, projects, service_installers, splitters, tasks, users
from ..selectors.common import rate
from ..state import AppState

RECENT_ORDERS_LIMIT = 5


def _order_overview(state: AppState, now: Optional[datetime]) -> Dict[str, Any]:
    return {
        "statusCounts": orders.get_order_status_counts(state),
        "typeCounts": orders.get_order_type_counts(state),
        "today": len(orders.get_todays_orders(state, now)),
        "thisWeek": len(orders.get_this_weeks_orders(state, now)),
        "unassigned": len(orders.get_unassigned_orders(state)),
    }


def _inventory_overview(state: AppState) -> Dict[str, Any]:
    return {
        "stockStatusCounts": materials.get_material_stock_status_counts(state),
        "typeCounts": materials.get_material_type_counts(state),
        "lowStock": materials.get_low_stock_materials(state),
        "outOfStock": materials.get_out_of_stock_materials(state),
    }


def _network_overview(state: AppState) -> Dict[str, Any]:
    return {
        "buildingTypeCounts": buildings.get_building_type_counts(state),
        "buildingsWithSplitters": buildings.get_buildings_with_splitters_count(state),
        "utilizationByBuilding": splitters.get_splitter_utilization_by_building(state),
    }


def super_admin_dashboard(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "orders": _order_overview(state, now),
        "network": _network_overview(state),
        "inventory": _inventory_overview(state),
        "installers": service_installers.get_service_installers_with_stats(state),
        "projects": projects.get_projects_stats(state),
        "users": users.get_users_stats(state, now),
    }


def supervisor_dashboard(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "orders": _order_overview(state, now),
        "todaysOrders": orders.get_todays_orders(state, now),
        "installersByWorkload": service_installers.get_service_installers_by_workload(state),
        "availability": service_installers.get_service_installer_availability(state),
        "overdueTasks": tasks.get_overdue_tasks(state, now),
        "upcomingDeadlines": projects.get_upcoming_deadline_projects(state, now),
    }


def installer_dashboard(state: AppState, installer_ids: Iterable[Any] = (), now: Optional[datetime] = None) -> Dict[str, Any]:
    """Jobs of the installer profiles linked to the signed-in user only."""
    ids = {str(i) for i in installer_ids}
    own = [o for o in orders.get_orders_list(state) if o.service_installer_id is not None and str(o.service_installer_id) in ids]
    own_ids = {str(o.id) for o in own}
    today = [o for o in orders.get_todays_orders(state, now) if str(o.id) in own_ids]
    week = [o for o in orders.get_this_weeks_orders(state, now) if str(o.id) in own_ids]
    completed = [o for o in own if o.status == "completed"]
    return {
        "todaysJobs": today,
        "thisWeeksJobs": week,
        "totalAssigned": len(own),
        "completed": len(completed),
        "completionRate": rate(len(completed), len(own)),
        "income": invoices.get_installer_income(state, ids, now),
        "performance": {
            key: value
            for key, value in service_installers.get_service_installer_performance(state).items()
            if key in ids
        },
    }


def accountant_dashboard(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    completed = orders.get_orders_by_status(state, "completed")
    return {
        "invoices": invoices.get_invoice_statistics(state, now),
        "recentInvoices": invoices.get_recent_invoices(state),
        "overdueInvoices": invoices.get_overdue_invoices(state, now),
        "revenueByMonth": invoices.get_revenue_by_month(state),
        "completedOrders": len(completed),
        "completedThisWeek": len([o for o in orders.get_this_weeks_orders(state, now) if o.status == "completed"]),
        "orderTypeCounts": orders.get_order_type_counts(state),
        "projectsWithBudget": projects.get_projects_with_budget(state),
    }


def warehouse_dashboard(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "inventory": _inventory_overview(state),
        "ordersWithoutMaterials": len([o for o in orders.get_orders_list(state) if not o.materials_assigned]),
        "activeMaterials": len(materials.get_active_materials(state)),
    }


def build_dashboard(
    state: AppState,
    role: Any,
    installer_ids: Iterable[Any] = (),
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Dashboard component key, role label and the statistics for ``role``.

    An unmapped role gets no statistics and no component.
    """
    parsed = Role.parse(role)
    payload = {"dashboard": get_dashboard_component(parsed), "roleName": get_role_name(role), "stats": {}}
    if parsed == Role.super_admin:
        payload["stats"] = super_admin_dashboard(state, now)
    elif parsed == Role.supervisor:
        payload["stats"] = supervisor_dashboard(state, now)
    elif parsed == Role.installer:
        payload["stats"] = installer_dashboard(state, installer_ids, now)
    elif parsed == Role.accountant:
        payload["stats"] = accountant_dashboard(state, now)
    elif parsed == Role.warehouse:
        payload["stats"] = warehouse_dashboard(state, now)
    return payload
