"""
Derived view models returned by the join and aggregation selectors.

These are enriched copies; the source records are never mutated.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from .records import Building, Project, ServiceInstaller, Splitter, Task, User


class View(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DropdownOption(View):
    value: str
    label: Optional[str] = None


class MaterialOption(DropdownOption):
    sap_code: Optional[str] = None
    description: Optional[str] = None
    stock_keeping_unit: float = 0
    unit_price: Optional[float] = None


class PortView(View):
    port_number: int
    is_used: bool = False
    service_id: Optional[str] = None
    customer_name: Optional[str] = None
    activation_date: Optional[datetime] = None
    status: str = "available"


class SplitterStatus(View):
    port_count: int
    used_ports: int
    available_ports: int
    utilization_rate: float


class SplitterWithBuilding(Splitter):
    building_name: str = "Unknown Building"
    building_location: Optional[str] = None


class BuildingUtilization(View):
    total_splitters: int = 0
    total_ports: int = 0
    used_ports: int = 0
    available_ports: int = 0
    utilization_rate: float = 0.0


class BuildingWithStats(Building):
    splitters: List[Splitter] = []
    total_ports: int = 0
    used_ports: int = 0
    available_ports: int = 0
    utilization_rate: float = 0.0


class OrderStats(View):
    total_assigned: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0


class InstallerWithStats(ServiceInstaller):
    order_stats: OrderStats = OrderStats()


class InstallerAvailability(View):
    available: bool = False
    reason: Optional[str] = None
    active_assignments: int = 0
    max_assignments: int = 0


class InstallerPerformance(View):
    total_assigned: int = 0
    completed: int = 0
    cancelled: int = 0
    completion_rate: float = 0.0
    average_completion_hours: float = 0.0
    on_time_rate: float = 0.0


class AssigneeWorkload(View):
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class TaskStats(View):
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0


class ProjectWithTasks(Project):
    tasks: List[Task] = []
    task_stats: TaskStats = TaskStats()


class BudgetInfo(View):
    total: float = 0.0
    spent: float = 0.0
    remaining: float = 0.0
    percent_used: int = 0
    over_budget: bool = False


class ProjectWithBudget(Project):
    budget_info: Optional[BudgetInfo] = None


class ProjectsStats(View):
    total: int = 0
    active: int = 0
    completed: int = 0
    cancelled: int = 0
    on_hold: int = 0
    by_priority: Dict[str, int] = {}


class UserWithDetails(User):
    full_name: str = ""
    days_inactive: Optional[int] = None
    is_inactive_too_long: bool = False


class UsersStats(View):
    total: int = 0
    active: int = 0
    inactive: int = 0
    by_role: Dict[str, int] = {}
    recently_active: int = 0



class InvoiceStats(View):
    total: int = 0
    pending: int = 0
    paid: int = 0
    overdue: int = 0
    cancelled: int = 0
    this_month: int = 0
    total_revenue: float = 0
    outstanding_amount: float = 0
    overdue_amount: float = 0
    collection_rate: float = 0


class IncomeSummary(View):
    invoice_count: int = 0
    paid_amount: float = 0
    pending_amount: float = 0
    this_month_amount: float = 0
