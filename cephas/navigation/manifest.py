"""
Static route manifest for the tracker UI.

Components are referenced by key; the dashboard entry has no component and is
resolved per role through ``DASHBOARD_COMPONENTS``.
"""
from typing import Dict, Optional, Tuple

from pydantic import BaseModel

from ..schemas.enums import ALL_ROLES, Role


class RouteEntry(BaseModel):
    path: str
    title: str
    icon: Optional[str] = None
    roles: Optional[Tuple[Role, ...]] = None
    children: Tuple["RouteEntry", ...] = ()
    sidebar: bool = False
    auth: bool = False
    exact: bool = False
    component: Optional[str] = None

    class Config:
        frozen = True


RouteEntry.model_rebuild()

SA = Role.super_admin
SV = Role.supervisor
INST = Role.installer
ACC = Role.accountant
WH = Role.warehouse

EVERYONE = tuple(ALL_ROLES)


def _section(path, title, icon, roles, children) -> RouteEntry:
    return RouteEntry(
        path=path,
        title=title,
        icon=icon,
        roles=roles,
        sidebar=True,
        auth=True,
        children=tuple(RouteEntry(**child) for child in children),
    )


def _page(path, title, icon, roles, component) -> RouteEntry:
    return RouteEntry(
        path=path,
        title=title,
        icon=icon,
        roles=roles,
        sidebar=True,
        auth=True,
        exact=True,
        component=component,
    )


def _public(path, title, component, exact=True) -> RouteEntry:
    return RouteEntry(path=path, title=title, component=component, exact=exact)


ROUTES: Tuple[RouteEntry, ...] = (
    RouteEntry(
        path="/dashboard",
        title="Dashboard",
        icon="home",
        roles=EVERYONE,
        sidebar=True,
        auth=True,
        exact=True,
    ),
    _section("/activation", "Activation/Modification", "settings", (SA, SV), [
        dict(path="/activation", title="All Activations", component="ActivationList", exact=True),
        dict(path="/activation/create", title="Create Activation", component="CreateActivation"),
        dict(path="/activation/:id", title="Edit Activation", component="EditActivation"),
    ]),
    _section("/assurance", "Assurance", "tool", (SA, SV), [
        dict(path="/assurance", title="All Assurances", component="AssuranceList", exact=True),
        dict(path="/assurance/create", title="Create Assurance", component="CreateAssurance"),
        dict(path="/assurance/:id", title="Edit Assurance", component="EditAssurance"),
    ]),
    _section("/building", "Buildings", "building", (SA, SV), [
        dict(path="/building", title="Building List", component="BuildingList", exact=True),
        dict(path="/building/create", title="Create Building", component="CreateBuilding"),
        dict(path="/building/:id/detail", title="Building Detail", component="BuildingDetail"),
        dict(path="/building/:id/edit", title="Edit Building", component="EditBuilding"),
    ]),
    _section("/splitter", "Splitter List", "list", (SA, SV), [
        dict(path="/splitter", title="Splitter List", component="SplitterList", exact=True),
        dict(path="/splitter/create", title="Create Splitter", component="CreateSplitter"),
        dict(path="/splitter/:id", title="View Splitter", component="SplitterDetail", exact=True),
        dict(path="/splitter/:id/edit", title="Edit Splitter", component="EditSplitter"),
    ]),
    _section("/material", "Materials", "package", (SA, SV, WH), [
        dict(path="/material", title="Material List", component="MaterialList", exact=True),
        dict(path="/material/create", title="Create Material", component="CreateMaterial", roles=(SA, WH)),
        dict(path="/material/:id", title="Edit Material", component="EditMaterial", roles=(SA, WH)),
    ]),
    _section("/service-installer", "Service Installers", "users", (SA, SV), [
        dict(path="/service-installer", title="Service Installer List", component="ServiceInstallerList", exact=True),
        dict(path="/service-installer/create", title="Create Service Installer", component="CreateServiceInstaller", roles=(SA,)),
        dict(path="/service-installer/:id/detail", title="Service Installer Detail", component="ServiceInstallerDetail"),
        dict(path="/service-installer/:id/edit", title="Edit Service Installer", component="EditServiceInstaller", roles=(SA,)),
    ]),
    _section("/order", "Orders", "list", (SA, SV), [
        dict(path="/order", title="Order List", component="OrderList", exact=True),
        dict(path="/order/create", title="Create Order", component="CreateOrder"),
        dict(path="/order/:id/detail", title="Order Detail", component="OrderDetail"),
        dict(path="/order/:id/edit", title="Edit Order", component="EditOrder"),
    ]),
    _page("/my-jobs", "My Jobs", "calendar", (INST,), "OrderList"),
    _section("/invoice", "Invoices", "file", (SA, ACC), [
        dict(path="/invoice", title="Invoice List", component="InvoiceList", exact=True),
        dict(path="/invoice/create", title="Create Invoice", component="CreateInvoice"),
        dict(path="/invoice/:id/detail", title="Invoice Detail", component="InvoiceDetail"),
        dict(path="/invoice/:id/edit", title="Edit Invoice", component="EditInvoice"),
    ]),
    _page("/my-income", "My Income", "dollar-sign", (INST,), "InvoiceList"),
    _section("/reports", "Reports", "bar-chart", (SA, SV, ACC), [
        dict(path="/reports", title="All Reports", component="Reports", exact=True),
        dict(path="/reports/financial", title="Financial Reports", component="FinancialReports", roles=(SA, ACC)),
        dict(path="/reports/operational", title="Operational Reports", component="OperationalReports", roles=(SA, SV)),
        dict(path="/reports/performance", title="Performance Reports", component="PerformanceReports", roles=(SA, SV)),
    ]),
    _section("/search", "Search", "search", EVERYONE, [
        dict(path="/search", title="Quick Search", component="SearchPage", exact=True),
        dict(path="/search/advanced", title="Advanced Search", component="AdvancedSearchPage"),
    ]),
    _section("/settings", "Settings", "settings", (SA,), [
        dict(path="/settings/users", title="User Management", component="UserManagement"),
        dict(path="/settings/system", title="System Settings", component="SystemSettings"),
        dict(path="/settings/profile", title="Profile Settings", component="ProfileSettings", roles=EVERYONE),
    ]),
    _page("/import", "Import", "download", (SA,), "ImportPage"),
    _page("/export", "Export", "upload", (SA, SV, ACC), "ExportPage"),
    _public("/login", "Login", "Login"),
    _public("/forgot-password", "Forgot Password", "ForgotPassword"),
    _public("/reset-password", "Reset Password", "ResetPassword"),
    _public("/unauthorized", "Unauthorized", "Unauthorized"),
    _public("*", "Page Not Found", "NotFound", exact=False),
)

DASHBOARD_COMPONENTS: Dict[Role, str] = {
    SA: "SuperAdminDashboard",
    SV: "SupervisorDashboard",
    INST: "ServiceInstallerDashboard",
    ACC: "AccountantDashboard",
    WH: "WarehouseDashboard",
}


def find_entry(path: str, manifest: Tuple[RouteEntry, ...] = ROUTES) -> Optional[RouteEntry]:
    for entry in manifest:
        if entry.path == path:
            return entry
    return None
