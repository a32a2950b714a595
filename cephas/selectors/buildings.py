from typing import Any, Dict, List, Optional

from ..schemas.enums import BuildingType
from ..schemas.records import Building
from ..schemas.views import BuildingWithStats, DropdownOption
from ..state import AppState
from .common import (
    count_by,
    error_of,
    filter_by,
    find_by_id,
    has_value,
    items_of,
    loading_of,
    port_usage,
    rate,
    same_id,
    search,
    total_count_of,
)

BUILDING_SEARCH_FIELDS = ("name", "location", "address", "contact_person")


def get_buildings_list(state: AppState) -> List[Building]:
    return items_of(state, "buildings")


def get_buildings_loading(state: AppState) -> bool:
    return loading_of(state, "buildings")


def get_buildings_error(state: AppState) -> Optional[str]:
    return error_of(state, "buildings")


def get_total_buildings_count(state: AppState) -> int:
    return total_count_of(state, "buildings")


def get_building_by_id(state: AppState, building_id: Any) -> Optional[Building]:
    return find_by_id(get_buildings_list(state), building_id)


def get_buildings_by_type(state: AppState, building_type: Any = None) -> List[Building]:
    return filter_by(get_buildings_list(state), "type", building_type)


def get_buildings_by_location(state: AppState, location: Any = None) -> List[Building]:
    return filter_by(get_buildings_list(state), "location", location)


def get_unique_building_locations(state: AppState) -> List[str]:
    return sorted({b.location for b in get_buildings_list(state) if b.location})


def get_unique_building_types(state: AppState) -> List[str]:
    return sorted({b.type for b in get_buildings_list(state) if b.type})


def get_building_type_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_buildings_list(state), "type", BuildingType)


def get_buildings_with_splitters_count(state: AppState) -> int:
    return sum(1 for b in get_buildings_list(state) if b.splitters)


def get_building_with_stats(state: AppState, building_id: Any) -> Optional[BuildingWithStats]:
    """The building joined with its splitters and their combined port usage.

    Used ports come from the splitter's ``used_ports`` counter when the server
    supplied one and from the port map otherwise, capped at the port count.
    """
    building = get_building_by_id(state, building_id)
    if building is None:
        return None
    splitters = [s for s in items_of(state, "splitters") if same_id(s.building_id, building.id)]
    total_ports = 0
    used_ports = 0
    for splitter in splitters:
        count, used = port_usage(splitter)
        if splitter.used_ports is not None:
            used = max(0, min(splitter.used_ports, count))
        total_ports += count
        used_ports += used
    data = building.model_dump()
    data["splitters"] = splitters
    return BuildingWithStats(
        **data,
        total_ports=total_ports,
        used_ports=used_ports,
        available_ports=total_ports - used_ports,
        utilization_rate=rate(used_ports, total_ports),
    )


def get_buildings_for_dropdown(state: AppState) -> List[DropdownOption]:
    return [
        DropdownOption(value=str(b.id), label=b.name)
        for b in get_buildings_list(state)
        if has_value(b.id)
    ]


def search_buildings(state: AppState, query: Optional[str] = None) -> List[Building]:
    return search(get_buildings_list(state), query, BUILDING_SEARCH_FIELDS)
