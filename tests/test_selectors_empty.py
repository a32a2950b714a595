"""Every aggregate over missing or empty collections reads as zero, never NaN."""
import math
from datetime import datetime

import pytest
from pydantic import BaseModel

from cephas.schemas.enums import Role
from cephas.selectors import (
    activations,
    buildings,
    invoices,
    materials,
    notifications,
    orders,
    projects,
    service_installers,
    splitters,
    tasks,
    users,
)
from cephas.services.dashboards import build_dashboard
from cephas.state import RECORD_TYPES, AppState

NOW = datetime(2025, 4, 15, 9, 0)

AGGREGATES = {
    "order_status_counts": orders.get_order_status_counts,
    "order_type_counts": orders.get_order_type_counts,
    "activation_status_counts": activations.get_activation_status_counts,
    "activation_subtype_counts": activations.get_activation_subtype_counts,
    "building_type_counts": buildings.get_building_type_counts,
    "buildings_with_splitters": buildings.get_buildings_with_splitters_count,
    "stock_status_counts": materials.get_material_stock_status_counts,
    "material_type_counts": materials.get_material_type_counts,
    "task_status_counts": tasks.get_task_status_counts,
    "task_priority_counts": tasks.get_task_priority_counts,
    "assignee_workload": tasks.get_assignee_workload,
    "projects_stats": projects.get_projects_stats,
    "projects_with_budget": projects.get_projects_with_budget,
    "project_completion": lambda s: projects.get_project_completion(s, "x"),
    "users_stats": lambda s: users.get_users_stats(s, NOW),
    "installers_with_stats": service_installers.get_service_installers_with_stats,
    "installer_availability": service_installers.get_service_installer_availability,
    "installer_performance": service_installers.get_service_installer_performance,
    "installers_by_workload": service_installers.get_service_installers_by_workload,
    "port_utilization": splitters.get_splitter_utilization_by_building,
    "invoice_status_counts": lambda s: invoices.get_invoice_status_counts(s, NOW),
    "invoice_statistics": lambda s: invoices.get_invoice_statistics(s, NOW),
    "installer_income": lambda s: invoices.get_installer_income(s, ["x"], NOW),
    "revenue_by_month": invoices.get_revenue_by_month,
    "total_revenue": invoices.get_total_revenue,
    "unread_notifications": notifications.get_unread_notifications_count,
    "total_orders": orders.get_total_orders_count,
    "total_activations": activations.get_total_activations_count,
    "total_buildings": buildings.get_total_buildings_count,
    "total_materials": materials.get_total_materials_count,
    "total_splitters": splitters.get_total_splitters_count,
    "total_installers": service_installers.get_total_service_installers_count,
    "total_tasks": tasks.get_total_tasks_count,
    "total_projects": projects.get_total_projects_count,
    "total_users": users.get_total_users_count,
    "total_invoices": invoices.get_total_invoices_count,
}
AGGREGATES.update({
    f"dashboard_{role.value}": (lambda s, role=role: build_dashboard(s, role, ["x"], NOW)) for role in Role
})


def numbers_in(value):
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if isinstance(value, dict):
        for item in value.values():
            yield from numbers_in(item)
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            yield from numbers_in(item)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        yield value


@pytest.fixture(params=["missing", "empty"])
def state(request):
    if request.param == "missing":
        return AppState(**{name: None for name in RECORD_TYPES})
    return AppState()


@pytest.mark.parametrize("name", sorted(AGGREGATES))
def test_aggregate_is_zero_without_data(state, name):
    result = AGGREGATES[name](state)
    for number in numbers_in(result):
        assert not math.isnan(number), name
        assert number == 0, name
