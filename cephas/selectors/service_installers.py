"""
Service installer selectors, including the joins against the orders
collection used for workload and performance reporting.

Only orders with a ``service_installer_id`` take part in these joins.
"""
from typing import Any, Dict, List, Optional

from ..config import settings
from ..schemas.enums import OrderStatus
from ..schemas.records import Order, ServiceInstaller
from ..schemas.views import (
    DropdownOption,
    InstallerAvailability,
    InstallerPerformance,
    InstallerWithStats,
    OrderStats,
)
from ..state import AppState
from .common import (
    day_of,
    error_of,
    find_by_id,
    hours_between,
    is_open,
    items_of,
    loading_of,
    rate,
    same_id,
    search,
    total_count_of,
)

INSTALLER_SEARCH_FIELDS = ("name", "contact_no", "email")

_COMPLETED = OrderStatus.completed.value
_IN_PROGRESS = OrderStatus.in_progress.value
_CANCELLED = OrderStatus.cancelled.value


def _assigned_orders(state: AppState, installer: ServiceInstaller) -> List[Order]:
    return [o for o in items_of(state, "orders") if same_id(o.service_installer_id, installer.id)]


def max_assignments_of(installer: ServiceInstaller) -> int:
    return installer.max_assignments or settings.default_max_assignments


def get_service_installers_list(state: AppState) -> List[ServiceInstaller]:
    return items_of(state, "service_installers")


def get_service_installers_loading(state: AppState) -> bool:
    return loading_of(state, "service_installers")


def get_service_installers_error(state: AppState) -> Optional[str]:
    return error_of(state, "service_installers")


def get_total_service_installers_count(state: AppState) -> int:
    return total_count_of(state, "service_installers")


def get_service_installer_by_id(state: AppState, installer_id: Any) -> Optional[ServiceInstaller]:
    return find_by_id(get_service_installers_list(state), installer_id)


def get_active_service_installers(state: AppState) -> List[ServiceInstaller]:
    return [i for i in get_service_installers_list(state) if i.is_active is not False]


def get_inactive_service_installers(state: AppState) -> List[ServiceInstaller]:
    return [i for i in get_service_installers_list(state) if i.is_active is False]


def get_service_installers_with_stats(state: AppState) -> List[InstallerWithStats]:
    result = []
    for installer in get_service_installers_list(state):
        assigned = _assigned_orders(state, installer)
        completed = sum(1 for o in assigned if o.status == _COMPLETED)
        in_progress = sum(1 for o in assigned if o.status == _IN_PROGRESS)
        stats = OrderStats(
            total_assigned=len(assigned),
            completed=completed,
            in_progress=in_progress,
            pending=len(assigned) - completed - in_progress,
        )
        result.append(InstallerWithStats(**installer.model_dump(), order_stats=stats))
    return result


def get_service_installer_availability(state: AppState) -> Dict[str, InstallerAvailability]:
    """Availability per installer id: active and below its assignment ceiling."""
    availability: Dict[str, InstallerAvailability] = {}
    for installer in get_service_installers_list(state):
        key = str(installer.id)
        ceiling = max_assignments_of(installer)
        if installer.is_active is False:
            availability[key] = InstallerAvailability(
                available=False, reason="Inactive", active_assignments=0, max_assignments=ceiling
            )
            continue
        active = sum(1 for o in _assigned_orders(state, installer) if is_open(o))
        full = active >= ceiling
        availability[key] = InstallerAvailability(
            available=not full,
            reason="Max assignments reached" if full else None,
            active_assignments=active,
            max_assignments=ceiling,
        )
    return availability


def get_service_installer_performance(state: AppState) -> Dict[str, InstallerPerformance]:
    """Completion and timeliness per installer id.

    Rates are percentages of the assigned (completion) and completed
    (on-time) orders. Average completion hours only consider completed
    orders carrying both the assigned and the completed timestamp. An order
    is on time when it was completed no later than its appointment day.
    """
    performance: Dict[str, InstallerPerformance] = {}
    for installer in get_service_installers_list(state):
        assigned = _assigned_orders(state, installer)
        completed = [o for o in assigned if o.status == _COMPLETED]
        cancelled = sum(1 for o in assigned if o.status == _CANCELLED)

        durations = []
        on_time = 0
        for order in completed:
            hours = hours_between(order.assigned_date, order.completed_date)
            if hours is not None:
                durations.append(hours)
            finished = day_of(order.completed_date)
            scheduled = day_of(order.appointment_date)
            if finished is not None and scheduled is not None and finished <= scheduled:
                on_time += 1

        performance[str(installer.id)] = InstallerPerformance(
            total_assigned=len(assigned),
            completed=len(completed),
            cancelled=cancelled,
            completion_rate=rate(len(completed), len(assigned)),
            average_completion_hours=sum(durations) / len(durations) if durations else 0.0,
            on_time_rate=rate(on_time, len(completed)),
        )
    return performance


def get_service_installers_for_dropdown(state: AppState) -> List[DropdownOption]:
    return [
        DropdownOption(value=str(i.id), label=i.name)
        for i in get_active_service_installers(state)
        if i.id is not None
    ]


def get_service_installers_by_workload(state: AppState) -> List[InstallerWithStats]:
    """Least busy first, by number of in-progress orders."""
    return sorted(get_service_installers_with_stats(state), key=lambda i: i.order_stats.in_progress)


def search_service_installers(state: AppState, query: Optional[str] = None) -> List[ServiceInstaller]:
    return search(get_service_installers_list(state), query, INSTALLER_SEARCH_FIELDS)
