"""Request bodies for the resource endpoints. Accept camelCase or snake_case keys."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import BuildingType, InvoiceStatus, OrderStatus, OrderType, Priority, ProjectStatus, Role, WorkStatus


class Payload(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


def _role_value(value):
    if value is None:
        return value
    parsed = Role.parse(value)
    if parsed is None:
        raise ValueError(f"Unknown role: {value}")
    return parsed


# ---------- USERS ----------
class UserCreate(Payload):
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = Role.installer
    permissions: Optional[List[str]] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v):
        return _role_value(v)


class UserUpdate(Payload):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[Role] = None
    permissions: Optional[List[str]] = None
    password: Optional[str] = Field(default=None, min_length=8)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v):
        return _role_value(v)


# ---------- BUILDINGS / SPLITTERS ----------
class BuildingCreate(Payload):
    name: str = Field(min_length=1)
    type: BuildingType = BuildingType.prelaid
    location: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None


class BuildingUpdate(Payload):
    name: Optional[str] = None
    type: Optional[BuildingType] = None
    location: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None


class PortEntry(Payload):
    is_used: bool = False
    service_id: Optional[str] = None
    customer_name: Optional[str] = None
    activation_date: Optional[datetime] = None
    status: Optional[str] = None


class SplitterCreate(Payload):
    building_id: str
    port_count: int = Field(default=32, gt=0)
    port_status: Dict[int, PortEntry] = {}
    service_id: Optional[str] = None
    splitter_level: Optional[str] = None
    splitter_number: Optional[str] = None
    alias: Optional[str] = None


class SplitterUpdate(Payload):
    port_count: Optional[int] = Field(default=None, gt=0)
    port_status: Optional[Dict[int, PortEntry]] = None
    service_id: Optional[str] = None
    splitter_level: Optional[str] = None
    splitter_number: Optional[str] = None
    alias: Optional[str] = None


# ---------- MATERIALS ----------
class MaterialCreate(Payload):
    sap_code: str = Field(min_length=1)
    description: str = Field(min_length=1)
    material_type: Optional[str] = None
    stock_keeping_unit: float = 0
    minimum_stock: float = 0
    unit_price: Optional[float] = Field(default=None, ge=0)
    is_active: bool = True
    notes: Optional[str] = None


class MaterialUpdate(Payload):
    sap_code: Optional[str] = None
    description: Optional[str] = None
    material_type: Optional[str] = None
    stock_keeping_unit: Optional[float] = None
    minimum_stock: Optional[float] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    notes: Optional[str] = None


# ---------- SERVICE INSTALLERS ----------
class ServiceInstallerCreate(Payload):
    name: str = Field(min_length=1)
    contact_no: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: bool = True
    max_assignments: Optional[int] = Field(default=None, gt=0)
    user_id: Optional[str] = None


class ServiceInstallerUpdate(Payload):
    name: Optional[str] = None
    contact_no: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None
    max_assignments: Optional[int] = Field(default=None, gt=0)


# ---------- ORDERS ----------
class OrderCreate(Payload):
    customer: str = Field(min_length=1)
    customer_phone: Optional[str] = None
    order_number: Optional[str] = None
    tbbno_id: Optional[str] = None
    building_id: Optional[str] = None
    order_type: OrderType = OrderType.activation
    order_sub_type: Optional[str] = None
    appointment_date: Optional[datetime] = None
    service_installer_id: Optional[str] = None
    notes: Optional[str] = None


class OrderUpdate(Payload):
    customer: Optional[str] = None
    customer_phone: Optional[str] = None
    order_number: Optional[str] = None
    tbbno_id: Optional[str] = None
    building_id: Optional[str] = None
    order_sub_type: Optional[str] = None
    appointment_date: Optional[datetime] = None
    service_installer_id: Optional[str] = None
    materials_assigned: Optional[bool] = None
    notes: Optional[str] = None


class OrderStatusUpdate(Payload):
    status: OrderStatus


# ---------- PROJECTS / TASKS ----------
class ExpenseEntry(Payload):
    amount: float = 0
    description: Optional[str] = None


class ProjectCreate(Payload):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    manager_id: Optional[str] = None
    status: ProjectStatus = ProjectStatus.todo
    priority: Priority = Priority.medium
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    budget: Optional[float] = Field(default=None, ge=0)
    expenses: List[ExpenseEntry] = []


class ProjectUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    manager_id: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    budget: Optional[float] = Field(default=None, ge=0)
    expenses: Optional[List[ExpenseEntry]] = None


class TaskCreate(Payload):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: WorkStatus = WorkStatus.todo
    priority: Priority = Priority.medium
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskUpdate(Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[WorkStatus] = None
    priority: Optional[Priority] = None
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    due_date: Optional[datetime] = None


# ---------- INVOICES ----------
def _invoice_status_value(value):
    if value is None:
        return value
    parsed = InvoiceStatus.parse(value)
    if parsed is None:
        raise ValueError(f"Unknown invoice status: {value}")
    return parsed


class InvoiceItemEntry(Payload):
    material_id: Optional[str] = None
    description: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    rate: float = Field(ge=0)


class InvoiceCreate(Payload):
    invoice_number: str = Field(min_length=1, max_length=64)
    submission_number: Optional[str] = None
    customer: str = Field(min_length=1)
    description: Optional[str] = None
    order_id: Optional[str] = None
    service_installer_id: Optional[str] = None
    date: datetime
    due_date: Optional[datetime] = None
    items: List[InvoiceItemEntry] = []
    total_amount: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class InvoiceUpdate(Payload):
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    submission_number: Optional[str] = None
    customer: Optional[str] = None
    description: Optional[str] = None
    order_id: Optional[str] = None
    service_installer_id: Optional[str] = None
    date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    items: Optional[List[InvoiceItemEntry]] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[InvoiceStatus] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v):
        return _invoice_status_value(v)


class InvoicePayment(Payload):
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
