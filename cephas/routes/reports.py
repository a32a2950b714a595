from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_roles
from ..db import get_db
from ..schemas.enums import Role
from ..selectors import activations, invoices, materials, orders, projects, service_installers, splitters, tasks
from ..services.envelope import ok
from ..services.snapshot import load_state

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/operational")
def operational_report(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    _=Depends(require_roles(Role.super_admin, Role.supervisor)),
):
    state = load_state(db, ["orders", "activations", "tasks"])
    in_range = orders.get_orders_by_date_range(state, start, end)
    return ok(
        {
            "orderStatusCounts": orders.get_order_status_counts(state),
            "orderTypeCounts": orders.get_order_type_counts(state),
            "activationSubtypeCounts": activations.get_activation_subtype_counts(state),
            "activeConnections": len(activations.get_active_connections(state)),
            "unassignedOrders": len(orders.get_unassigned_orders(state)),
            "ordersInRange": len(in_range),
            "overdueTasks": len(tasks.get_overdue_tasks(state)),
            "taskStatusCounts": tasks.get_task_status_counts(state),
        }
    )


@router.get("/performance")
def performance_report(db: Session = Depends(get_db), _=Depends(require_roles(Role.super_admin, Role.supervisor))):
    state = load_state(db, ["orders", "service_installers", "tasks", "projects"])
    return ok(
        {
            "installers": service_installers.get_service_installer_performance(state),
            "assigneeWorkload": tasks.get_assignee_workload(state),
            "projectCompletion": {
                str(p.id): projects.get_project_completion(state, p.id) for p in projects.get_projects_list(state)
            },
            "overdueProjects": projects.get_overdue_projects(state),
        }
    )


@router.get("/inventory")
def inventory_report(
    db: Session = Depends(get_db),
    _=Depends(require_roles(Role.super_admin, Role.supervisor, Role.warehouse)),
):
    state = load_state(db, ["materials", "buildings", "splitters"])
    return ok(
        {
            "stockStatusCounts": materials.get_material_stock_status_counts(state),
            "typeCounts": materials.get_material_type_counts(state),
            "lowStock": materials.get_low_stock_materials(state),
            "outOfStock": materials.get_out_of_stock_materials(state),
            "portUtilization": splitters.get_splitter_utilization_by_building(state),
        }
    )


@router.get("/financial")
def financial_report(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    _=Depends(require_roles(Role.super_admin, Role.accountant)),
):
    """Revenue of paid invoices booked between ``start`` and ``end``, plus the open book."""
    state = load_state(db, ["invoices"])
    stats = invoices.get_invoice_statistics(state)
    return ok(
        {
            "totalRevenue": invoices.get_total_revenue(state, start, end),
            "revenueByMonth": invoices.get_revenue_by_month(state, start, end),
            "revenueByServiceType": invoices.get_revenue_by_service_type(state, start, end),
            "statusCounts": invoices.get_invoice_status_counts(state),
            "statistics": stats,
            "outstanding": stats.outstanding_amount,
            "overdueInvoices": invoices.get_overdue_invoices(state),
        }
    )
