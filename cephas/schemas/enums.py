import enum
from typing import Optional


class Role(str, enum.Enum):
    super_admin = "super_admin"
    supervisor = "supervisor"
    installer = "installer"
    accountant = "accountant"
    warehouse = "warehouse"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Normalize a stored role value; unrecognized values yield None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        key = _ROLE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


_ROLE_ALIASES = {
    "service_installer": "installer",
    "superadmin": "super_admin",
    "admin": "super_admin",
}

ALL_ROLES = tuple(Role)


class OrderStatus(str, enum.Enum):
    pending = "pending"
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


# Forward-only progression; cancelled is reachable from any non-terminal status
ORDER_STATUS_SEQUENCE = (
    OrderStatus.pending,
    OrderStatus.assigned,
    OrderStatus.in_progress,
    OrderStatus.completed,
)
TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.completed, OrderStatus.cancelled})


def can_transition(current: str, target: str) -> bool:
    try:
        cur = OrderStatus(current)
        nxt = OrderStatus(target)
    except ValueError:
        return False
    if cur in TERMINAL_ORDER_STATUSES:
        return False
    if nxt == OrderStatus.cancelled:
        return True
    return ORDER_STATUS_SEQUENCE.index(nxt) >= ORDER_STATUS_SEQUENCE.index(cur)


class OrderType(str, enum.Enum):
    activation = "activation"
    modification = "modification"
    assurance = "assurance"


class BuildingType(str, enum.Enum):
    prelaid = "prelaid"
    non_prelaid = "non_prelaid"
    both = "both"


class StockStatus(str, enum.Enum):
    in_stock = "in_stock"
    low_stock = "low_stock"
    out_of_stock = "out_of_stock"


class WorkStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class ProjectStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


CLOSED_WORK_STATUSES = frozenset({"completed", "cancelled"})


class Priority(str, enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


PRIORITY_RANK = {Priority.high.value: 0, Priority.medium.value: 1, Priority.low.value: 2}


class InvoiceStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"
    overdue = "overdue"
    cancelled = "cancelled"

    @classmethod
    def parse(cls, value) -> Optional["InvoiceStatus"]:
        """Accepts the upper-case spellings older clients send (``PAID``)."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# only these can still be edited or paid
OPEN_INVOICE_STATUSES = frozenset({InvoiceStatus.pending, InvoiceStatus.overdue})

INVOICE_SERVICE_TYPES = (
    "Prelaid Activation",
    "Non-Prelaid Activation",
    "Prelaid Modification",
    "Non-Prelaid Modification",
    "Assurance Visit",
    "Installation Service",
    "Material Supply",
    "Other Service",
)
