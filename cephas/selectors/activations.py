"""
Activation selectors. Activations are orders held in their own collection and
searched by the activation-form field names (name, contact number, TRBN).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..schemas.enums import OrderStatus, OrderType
from ..schemas.records import Order
from ..state import AppState
from .common import (
    count_by,
    error_of,
    filter_by,
    filter_by_date_range,
    filter_by_ref,
    filter_this_week,
    filter_today,
    find_by_id,
    items_of,
    loading_of,
    search,
    total_count_of,
    without_ref,
)

ACTIVATION_SEARCH_FIELDS = ("name", "contact_no", "trbn_no", "building")


def get_activations_list(state: AppState) -> List[Order]:
    return items_of(state, "activations")


def get_activations_loading(state: AppState) -> bool:
    return loading_of(state, "activations")


def get_activations_error(state: AppState) -> Optional[str]:
    return error_of(state, "activations")


def get_total_activations_count(state: AppState) -> int:
    return total_count_of(state, "activations")


def get_activation_by_id(state: AppState, activation_id: Any) -> Optional[Order]:
    return find_by_id(get_activations_list(state), activation_id)


def get_activations_by_status(state: AppState, status: Any = None) -> List[Order]:
    return filter_by(get_activations_list(state), "status", status)


def get_activations_by_type(state: AppState, order_type: Any = None) -> List[Order]:
    return filter_by(get_activations_list(state), "order_type", order_type)


def get_activations_by_building(state: AppState, building_id: Any = None) -> List[Order]:
    return filter_by_ref(get_activations_list(state), "building_id", building_id)


def get_activations_by_service_installer(state: AppState, installer_id: Any = None) -> List[Order]:
    return filter_by_ref(get_activations_list(state), "service_installer_id", installer_id)


def get_activation_status_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_activations_list(state), "status", OrderStatus)


def get_activation_subtype_counts(state: AppState) -> Dict[str, int]:
    """Counts per ``order_sub_type`` among activation-type orders; ``total`` counts those only."""
    counts: Dict[str, int] = {}
    total = 0
    for activation in get_activations_list(state):
        if activation.order_type != OrderType.activation.value:
            continue
        total += 1
        subtype = activation.order_sub_type or "default"
        counts[subtype] = counts.get(subtype, 0) + 1
    counts["total"] = total
    return counts


def get_active_connections(state: AppState) -> List[Order]:
    return [
        a
        for a in get_activations_list(state)
        if a.order_type == OrderType.activation.value and a.status == OrderStatus.completed.value
    ]


def get_activations_by_date_range(state: AppState, start: Any = None, end: Any = None) -> List[Order]:
    return filter_by_date_range(get_activations_list(state), "appointment_date", start, end)


def get_todays_activations(state: AppState, now: Optional[datetime] = None) -> List[Order]:
    return filter_today(get_activations_list(state), "appointment_date", now)


def get_this_weeks_activations(state: AppState, now: Optional[datetime] = None) -> List[Order]:
    return filter_this_week(get_activations_list(state), "appointment_date", now)


def get_unassigned_activations(state: AppState) -> List[Order]:
    return without_ref(get_activations_list(state), "service_installer_id")


def get_activations_without_materials(state: AppState) -> List[Order]:
    return [a for a in get_activations_list(state) if not a.materials_assigned]


def search_activations(state: AppState, query: Optional[str] = None) -> List[Order]:
    return search(get_activations_list(state), query, ACTIVATION_SEARCH_FIELDS)
