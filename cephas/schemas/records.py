"""
Typed records for the normalized domain collections.

Records mirror the JSON payloads served by the API (camelCase on the wire,
snake_case in Python). Every field the selectors read is optional with an
explicit neutral default, so a partially populated record never needs a
truthiness check downstream.
"""
import uuid
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field
from pydantic.alias_generators import to_camel


def _coerce_id(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return value


def _loose_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds, as browsers serialize Date.getTime()
        return datetime.fromtimestamp(value / 1000)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _coerce_text(value: Any) -> Any:
    # phone numbers and codes often arrive as JSON numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _zero_if_missing(value: Any) -> Any:
    if value is None or value == "":
        return 0
    return value


def _false_if_missing(value: Any) -> Any:
    return False if value is None else value


Text = Annotated[Optional[str], BeforeValidator(_coerce_text)]
EntityId = Annotated[Optional[Union[int, str]], BeforeValidator(_coerce_id)]
Timestamp = Annotated[Optional[datetime], BeforeValidator(_loose_datetime)]
Quantity = Annotated[float, BeforeValidator(_zero_if_missing)]
Flag = Annotated[bool, BeforeValidator(_false_if_missing)]


class Record(BaseModel):
    id: EntityId = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        extra = "ignore"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class User(Record):
    first_name: Text = None
    last_name: Text = None
    username: Text = None
    email: Text = None
    role: Text = None
    is_active: Flag = False
    permissions: Optional[List[str]] = None
    last_login: Timestamp = None
    last_activity_at: Timestamp = None


class Order(Record):
    tracker_id: Text = None
    order_number: Text = None
    customer: Text = None
    customer_phone: Text = None
    tbbno_id: Text = None
    # activation-style naming, kept alongside the order fields
    name: Text = None
    contact_no: Text = None
    trbn_no: Text = None
    building: Text = None
    status: Text = None
    order_type: Text = None
    order_sub_type: Text = None
    appointment_date: Timestamp = None
    building_id: EntityId = None
    service_installer_id: EntityId = None
    materials_assigned: Flag = False
    assigned_date: Timestamp = None
    completed_date: Timestamp = None
    notes: Text = None


class Building(Record):
    name: Text = None
    type: Text = None
    location: Text = None
    address: Text = None
    contact_person: Text = None
    splitters: List[Any] = Field(default_factory=list)


class PortUsage(BaseModel):
    is_used: Flag = False
    service_id: Text = None
    customer_name: Text = None
    activation_date: Timestamp = None
    status: Text = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        extra = "ignore"


class Splitter(Record):
    building_id: EntityId = None
    port_count: Optional[int] = None
    port_status: Dict[int, PortUsage] = Field(default_factory=dict)
    used_ports: Optional[int] = None
    service_id: Text = None
    splitter_level: Text = None
    splitter_number: Text = None
    alias: Text = None


class Material(Record):
    sap_code: Text = None
    description: Text = None
    material_type: Text = None
    stock_keeping_unit: Quantity = 0
    minimum_stock: Quantity = 0
    unit_price: Optional[float] = None
    is_active: Optional[bool] = None
    notes: Text = None


class ServiceInstaller(Record):
    name: Text = None
    contact_no: Text = None
    email: Text = None
    is_active: Optional[bool] = None
    max_assignments: Optional[int] = None


class Task(Record):
    title: Text = None
    description: Text = None
    status: Text = None
    priority: Text = None
    assignee_id: EntityId = None
    project_id: EntityId = None
    due_date: Timestamp = None


class Expense(BaseModel):
    amount: Quantity = 0
    description: Text = None


class Project(Record):
    name: Text = None
    description: Text = None
    client_id: EntityId = None
    client_name: Text = None
    manager_id: EntityId = None
    manager_name: Text = None
    status: Text = None
    priority: Text = None
    start_date: Timestamp = None
    due_date: Timestamp = None
    updated_at: Timestamp = None
    budget: Optional[float] = None
    expenses: List[Expense] = Field(default_factory=list)


class Notification(Record):
    title: Text = None
    message: Text = None
    read: Flag = False
    created_at: Timestamp = None


class InvoiceItem(BaseModel):
    material_id: EntityId = None
    description: Text = None
    quantity: Quantity = 0
    rate: Quantity = 0
    amount: Optional[float] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        extra = "ignore"


class Invoice(Record):
    invoice_number: Text = None
    submission_number: Text = None
    customer: Text = None
    description: Text = None
    order_id: EntityId = None
    service_installer_id: EntityId = None
    date: Timestamp = None
    due_date: Timestamp = None
    items: Optional[List[InvoiceItem]] = Field(default_factory=list)
    total_amount: Quantity = 0
    status: Text = None
    payment_date: Timestamp = None
    payment_reference: Text = None
    notes: Text = None
