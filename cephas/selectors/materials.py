"""
Material selectors.

Every material is in exactly one stock state, decided by ``stock_state``:
out of stock at or below zero, low stock when positive but under the
minimum, in stock otherwise.
"""
from typing import Any, Dict, List, Optional

from ..schemas.enums import StockStatus
from ..schemas.records import Material
from ..schemas.views import MaterialOption
from ..state import AppState
from .common import (
    AnyOf,
    error_of,
    filter_by,
    find_by,
    find_by_id,
    items_of,
    loading_of,
    search,
    tally,
    total_count_of,
)

MATERIAL_SEARCH_FIELDS = ("description", "sap_code", "material_type", "notes")


def stock_state(material: Material) -> StockStatus:
    stock = material.stock_keeping_unit or 0
    minimum = material.minimum_stock or 0
    if stock <= 0:
        return StockStatus.out_of_stock
    if stock < minimum:
        return StockStatus.low_stock
    return StockStatus.in_stock


def get_materials_list(state: AppState) -> List[Material]:
    return items_of(state, "materials")


def get_materials_loading(state: AppState) -> bool:
    return loading_of(state, "materials")


def get_materials_error(state: AppState) -> Optional[str]:
    return error_of(state, "materials")


def get_total_materials_count(state: AppState) -> int:
    return total_count_of(state, "materials")


def get_material_by_id(state: AppState, material_id: Any) -> Optional[Material]:
    return find_by_id(get_materials_list(state), material_id)


def get_material_by_sap_code(state: AppState, sap_code: Optional[str]) -> Optional[Material]:
    return find_by(get_materials_list(state), "sap_code", sap_code)


def get_materials_by_type(state: AppState, material_type: Any = None) -> List[Material]:
    return filter_by(get_materials_list(state), "material_type", material_type)


def get_materials_by_status(state: AppState) -> Dict[str, List[Material]]:
    """Materials partitioned by stock state, plus ``all``."""
    materials = get_materials_list(state)
    grouped: Dict[str, List[Material]] = {s.value: [] for s in StockStatus}
    for material in materials:
        grouped[stock_state(material).value].append(material)
    grouped["all"] = list(materials)
    return grouped


def get_active_materials(state: AppState) -> List[Material]:
    return [m for m in get_materials_list(state) if m.is_active is not False]


def get_inactive_materials(state: AppState) -> List[Material]:
    return [m for m in get_materials_list(state) if m.is_active is False]


def get_low_stock_materials(state: AppState) -> List[Material]:
    return [m for m in get_materials_list(state) if stock_state(m) == StockStatus.low_stock]


def get_out_of_stock_materials(state: AppState) -> List[Material]:
    return [m for m in get_materials_list(state) if stock_state(m) == StockStatus.out_of_stock]


def get_material_stock_status_counts(state: AppState) -> Dict[str, int]:
    materials = get_materials_list(state)
    counts = {s.value: 0 for s in StockStatus}
    counts["total"] = len(materials)
    for material in materials:
        counts[stock_state(material).value] += 1
    return counts


def get_material_type_counts(state: AppState) -> Dict[str, int]:
    return tally(get_materials_list(state), lambda m: m.material_type or "other")


def get_materials_for_dropdown(state: AppState) -> List[MaterialOption]:
    return [
        MaterialOption(
            value=str(m.id),
            label=f"{m.description or ''} ({m.sap_code or ''})",
            sap_code=m.sap_code,
            description=m.description,
            stock_keeping_unit=m.stock_keeping_unit,
            unit_price=m.unit_price,
        )
        for m in get_active_materials(state)
        if m.id is not None
    ]


def search_materials(state: AppState, query: Optional[str] = None) -> List[Material]:
    return search(get_materials_list(state), query, MATERIAL_SEARCH_FIELDS)


def filter_materials(
    state: AppState,
    material_type: Any = None,
    stock_status: Any = None,
    is_active: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[Material]:
    """All criteria combined with AND; an unset criterion does not filter.

    A price bound excludes materials that carry no ``unit_price``.
    """
    types = AnyOf.coerce(material_type)
    states = AnyOf.coerce(stock_status)
    result = []
    for material in get_materials_list(state):
        if types is not None and material.material_type not in types:
            continue
        if states is not None and stock_state(material) not in states:
            continue
        if is_active is not None and (material.is_active is not False) != is_active:
            continue
        if min_price is not None and (material.unit_price is None or material.unit_price < min_price):
            continue
        if max_price is not None and (material.unit_price is None or material.unit_price > max_price):
            continue
        result.append(material)
    return result
