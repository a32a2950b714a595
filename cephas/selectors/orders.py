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

ORDER_SEARCH_FIELDS = ("customer", "customer_phone", "tbbno_id", "order_number")


def get_orders_list(state: AppState) -> List[Order]:
    return items_of(state, "orders")


def get_orders_loading(state: AppState) -> bool:
    return loading_of(state, "orders")


def get_orders_error(state: AppState) -> Optional[str]:
    return error_of(state, "orders")


def get_total_orders_count(state: AppState) -> int:
    return total_count_of(state, "orders")


def get_order_by_id(state: AppState, order_id: Any) -> Optional[Order]:
    return find_by_id(get_orders_list(state), order_id)


def get_orders_by_status(state: AppState, status: Any = None) -> List[Order]:
    return filter_by(get_orders_list(state), "status", status)


def get_orders_by_type(state: AppState, order_type: Any = None) -> List[Order]:
    return filter_by(get_orders_list(state), "order_type", order_type)


def get_orders_by_building(state: AppState, building_id: Any = None) -> List[Order]:
    return filter_by_ref(get_orders_list(state), "building_id", building_id)


def get_orders_by_service_installer(state: AppState, installer_id: Any = None) -> List[Order]:
    return filter_by_ref(get_orders_list(state), "service_installer_id", installer_id)


def get_order_status_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_orders_list(state), "status", OrderStatus)


def get_order_type_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_orders_list(state), "order_type", OrderType)


def get_orders_by_date_range(state: AppState, start: Any = None, end: Any = None) -> List[Order]:
    """Orders whose appointment falls inside the (inclusive) range."""
    return filter_by_date_range(get_orders_list(state), "appointment_date", start, end)


def get_todays_orders(state: AppState, now: Optional[datetime] = None) -> List[Order]:
    return filter_today(get_orders_list(state), "appointment_date", now)


def get_this_weeks_orders(state: AppState, now: Optional[datetime] = None) -> List[Order]:
    return filter_this_week(get_orders_list(state), "appointment_date", now)


def get_unassigned_orders(state: AppState) -> List[Order]:
    return without_ref(get_orders_list(state), "service_installer_id")


def search_orders(state: AppState, query: Optional[str] = None) -> List[Order]:
    return search(get_orders_list(state), query, ORDER_SEARCH_FIELDS)
