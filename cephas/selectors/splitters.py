"""
Splitter selectors: port occupancy, utilization and the building join.

A splitter without ``port_count`` is treated as a 32-port device. Ports are
numbered from 1; only entries of ``port_status`` inside ``1..port_count`` with
``is_used`` set count as used, so ``used + available == port_count`` holds for
every splitter regardless of what the sparse mapping contains.
"""
from typing import Any, Dict, List, Optional

from ..schemas.records import Splitter
from ..schemas.views import BuildingUtilization, PortView, SplitterStatus, SplitterWithBuilding
from ..state import AppState
from .buildings import get_building_by_id
from .common import (
    error_of,
    filter_by_ref,
    find_by,
    find_by_id,
    has_value,
    items_of,
    loading_of,
    port_count_of,
    port_usage,
    rate,
    search,
    total_count_of,
)

SPLITTER_SEARCH_FIELDS = ("service_id", "splitter_level", "splitter_number", "alias")


def get_splitters_list(state: AppState) -> List[Splitter]:
    return items_of(state, "splitters")


def get_splitters_loading(state: AppState) -> bool:
    return loading_of(state, "splitters")


def get_splitters_error(state: AppState) -> Optional[str]:
    return error_of(state, "splitters")


def get_total_splitters_count(state: AppState) -> int:
    return total_count_of(state, "splitters")


def get_splitter_by_id(state: AppState, splitter_id: Any) -> Optional[Splitter]:
    return find_by_id(get_splitters_list(state), splitter_id)


def get_splitters_by_building(state: AppState, building_id: Any = None) -> List[Splitter]:
    return filter_by_ref(get_splitters_list(state), "building_id", building_id)


def get_splitter_by_service_id(state: AppState, service_id: Optional[str]) -> Optional[Splitter]:
    return find_by(get_splitters_list(state), "service_id", service_id)


def get_splitter_with_building(state: AppState, splitter_id: Any, building_id: Any = None) -> Optional[SplitterWithBuilding]:
    splitter = get_splitter_by_id(state, splitter_id)
    if splitter is None:
        return None
    building = get_building_by_id(state, building_id if has_value(building_id) else splitter.building_id)
    enriched = SplitterWithBuilding.model_validate(splitter.model_dump())
    if building is not None:
        enriched.building_name = building.name or enriched.building_name
        enriched.building_location = building.location
    return enriched


def get_splitter_status(state: AppState, splitter_id: Any) -> Optional[SplitterStatus]:
    splitter = get_splitter_by_id(state, splitter_id)
    if splitter is None:
        return None
    count, used = port_usage(splitter)
    return SplitterStatus(
        port_count=count,
        used_ports=used,
        available_ports=count - used,
        utilization_rate=rate(used, count),
    )


def get_splitter_utilization_by_building(state: AppState) -> Dict[str, BuildingUtilization]:
    """Per-building port totals keyed by the string form of ``building_id``."""
    by_building: Dict[str, BuildingUtilization] = {}
    for splitter in get_splitters_list(state):
        if not has_value(splitter.building_id):
            continue
        key = str(splitter.building_id)
        stats = by_building.setdefault(key, BuildingUtilization())
        count, used = port_usage(splitter)
        stats.total_splitters += 1
        stats.total_ports += count
        stats.used_ports += used
        stats.available_ports += count - used
    for stats in by_building.values():
        stats.utilization_rate = rate(stats.used_ports, stats.total_ports)
    return by_building


def get_splitter_ports(state: AppState, splitter_id: Any) -> List[PortView]:
    splitter = get_splitter_by_id(state, splitter_id)
    if splitter is None:
        return []
    ports = []
    for number in range(1, port_count_of(splitter) + 1):
        usage = splitter.port_status.get(number)
        if usage is None:
            ports.append(PortView(port_number=number))
            continue
        ports.append(
            PortView(
                port_number=number,
                is_used=usage.is_used,
                service_id=usage.service_id,
                customer_name=usage.customer_name,
                activation_date=usage.activation_date,
                status=usage.status or "available",
            )
        )
    return ports


def get_available_splitter_ports(state: AppState, splitter_id: Any) -> List[PortView]:
    return [p for p in get_splitter_ports(state, splitter_id) if not p.is_used]


def get_used_splitter_ports(state: AppState, splitter_id: Any) -> List[PortView]:
    return [p for p in get_splitter_ports(state, splitter_id) if p.is_used]


def search_splitters(state: AppState, query: Optional[str] = None) -> List[Splitter]:
    return search(get_splitters_list(state), query, SPLITTER_SEARCH_FIELDS)
