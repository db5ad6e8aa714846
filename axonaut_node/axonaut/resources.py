"""Catalog of Axonaut resources and the operations the node offers on them.

This catalog tells the dispatcher, for every resource:
- Where its collection lives and how single records are addressed
- Whether the API has a get-by-id endpoint or a collection scan is needed
- How records are labelled in interactive search
- Resource-specific actions (mark won, send, stock, receipts...)
"""
from typing import Callable, Optional, Union

from pydantic import BaseModel

from axonaut_node.axonaut.search import payment_label, timetracking_label
from axonaut_node.models import HttpMethod

CRUD = ["create", "get", "getAll", "update", "delete", "search"]
CRUD_UPSERT = CRUD + ["upsert"]
READ_ONLY = ["get", "getAll", "search"]


class ActionDefinition(BaseModel):
    """A resource-specific call outside the standard operations."""

    method: HttpMethod = HttpMethod.GET
    path: str  # Template, e.g. "/opportunities/{id}/won"
    paginate: bool = False  # Collect every page of a listing
    send_fields: bool = False  # Send the `fields` parameter as body


class ResourceDefinition(BaseModel):
    """Definition of one Axonaut resource."""

    name: str
    resource_type: str  # Human-readable, used for fallback labels
    path: str
    operations: list[str] = READ_ONLY

    # Single-record addressing
    id_field: str = "id"
    item_path: Optional[str] = None  # Defaults to "<path>/{id}"
    has_get_endpoint: bool = True
    # Collection scanned by get when there is no get-by-id endpoint,
    # also the listing used by getAll when set
    collection_path: Optional[str] = None
    create_path: Optional[str] = None

    # Interactive search
    name_fields: Union[str, list[str], Callable[[dict], str]] = "name"
    search_parent_path: Optional[str] = None  # Nested search across parents
    search_child_path: Optional[str] = None  # Template with {parent_id}
    search_parent_limit: Optional[int] = None
    parent_label_field: str = "name"

    # Upsert
    match_field: str = "name"

    actions: dict[str, ActionDefinition] = {}

    def item_template(self) -> str:
        return self.item_path or f"{self.path}/{{id}}"

    def listing_template(self) -> str:
        return self.collection_path or self.path

    def supports(self, operation: str) -> bool:
        return operation in self.operations or operation in self.actions


def address_label(record: dict) -> str:
    """Address name, else "<street> <city>"."""
    if record.get("name"):
        return str(record["name"])
    street = record.get("address_street") or ""
    city = record.get("address_city") or ""
    return f"{street} {city}".strip()


def document_label(record: dict) -> str:
    """Document name with its type and creation date."""
    name = record.get("name") or record.get("filename") or f"Document {record.get('id')}"
    label = str(name)
    if record.get("type"):
        label += f" ({record['type']})"
    if record.get("created_at"):
        label += f" - {str(record['created_at']).split('T')[0]}"
    return label


def _listing(path: str) -> ActionDefinition:
    return ActionDefinition(method=HttpMethod.GET, path=path, paginate=True)


RESOURCE_CATALOG: dict[str, ResourceDefinition] = {
    # =========================================================================
    # CRM
    # =========================================================================
    "company": ResourceDefinition(
        name="company",
        resource_type="Company",
        path="/companies",
        operations=CRUD_UPSERT,
    ),
    "employee": ResourceDefinition(
        name="employee",
        resource_type="Employee",
        path="/employees",
        operations=CRUD_UPSERT,
        name_fields=["firstname", "lastname"],
        match_field="email",
        actions={
            "getCompanyEmployees": _listing("/companies/{company_id}/employees"),
        },
    ),
    "opportunity": ResourceDefinition(
        name="opportunity",
        resource_type="Opportunity",
        path="/opportunities",
        operations=CRUD_UPSERT,
        actions={
            "markWon": ActionDefinition(method=HttpMethod.PATCH, path="/opportunities/{id}/won"),
            "markLost": ActionDefinition(method=HttpMethod.PATCH, path="/opportunities/{id}/lost"),
        },
    ),
    "event": ResourceDefinition(
        name="event",
        resource_type="Event",
        path="/events",
        operations=CRUD,
        name_fields="title",
        actions={
            "getCompanyEvents": _listing("/companies/{company_id}/events"),
            "send": ActionDefinition(method=HttpMethod.POST, path="/events/{id}/send"),
        },
    ),
    "address": ResourceDefinition(
        name="address",
        resource_type="Address",
        path="/addresses",
        operations=CRUD,
        has_get_endpoint=False,
        collection_path="/companies/{company_id}/addresses",
        name_fields=address_label,
        search_parent_path="/companies",
        search_child_path="/companies/{parent_id}/addresses",
    ),
    "ticket": ResourceDefinition(
        name="ticket",
        resource_type="Ticket",
        path="/tickets",
        operations=["create", "get", "getAll", "update", "search"],
        name_fields="title",
    ),
    # =========================================================================
    # Sales and invoicing
    # =========================================================================
    "invoice": ResourceDefinition(
        name="invoice",
        resource_type="Invoice",
        path="/invoices",
        name_fields="number",
        actions={
            "getCompanyInvoices": _listing("/companies/{company_id}/invoices"),
        },
    ),
    "invoice-payment": ResourceDefinition(
        name="invoice-payment",
        resource_type="Payment",
        path="/payments",
        operations=["create", "get", "getAll", "search"],
        has_get_endpoint=False,
        name_fields=payment_label,
    ),
    "quotation": ResourceDefinition(
        name="quotation",
        resource_type="Quotation",
        path="/quotations",
        operations=["create", "get", "getAll", "search"],
        name_fields="title",
        actions={
            "getCompanyQuotations": _listing("/companies/{company_id}/quotations"),
        },
    ),
    "contract": ResourceDefinition(
        name="contract",
        resource_type="Contract",
        path="/contracts",
        operations=["create", "get", "getAll", "update", "search"],
        name_fields="number",
        actions={
            "getCompanyContracts": _listing("/companies/{company_id}/contracts"),
        },
    ),
    "product": ResourceDefinition(
        name="product",
        resource_type="Product",
        path="/products",
        operations=CRUD_UPSERT,
        actions={
            "getStock": ActionDefinition(path="/products/{id}/stock"),
            "updateStock": ActionDefinition(
                method=HttpMethod.PATCH,
                path="/products/{id}/stock",
                send_fields=True,
            ),
        },
    ),
    "delivery-forms": ResourceDefinition(
        name="delivery-forms",
        resource_type="Delivery form",
        path="/delivery-forms",
        operations=["create", "get", "getAll"],
        name_fields="number",
        actions={
            "download": ActionDefinition(path="/delivery-forms/{id}/download"),
        },
    ),
    # =========================================================================
    # Purchases and accounting
    # =========================================================================
    "expense": ResourceDefinition(
        name="expense",
        resource_type="Expense",
        path="/expenses",
        name_fields="title",
        actions={
            "createPayment": ActionDefinition(
                method=HttpMethod.POST,
                path="/expenses/payments",
                send_fields=True,
            ),
        },
    ),
    "expense-payment": ResourceDefinition(
        name="expense-payment",
        resource_type="Expense payment",
        path="/expense-payments",
        operations=["create", "get", "getAll", "search"],
        has_get_endpoint=False,
        name_fields=payment_label,
    ),
    "bank-transaction": ResourceDefinition(
        name="bank-transaction",
        resource_type="Bank transaction",
        path="/bank-transactions",
        has_get_endpoint=False,
        name_fields="label",
    ),
    "supplier": ResourceDefinition(
        name="supplier",
        resource_type="Supplier",
        path="/suppliers",
        operations=["create", "get", "getAll", "search"],
    ),
    "supplier-contract": ResourceDefinition(
        name="supplier-contract",
        resource_type="Supplier contract",
        path="/supplier-contracts",
        operations=["create", "get", "getAll", "search"],
        name_fields="title",
    ),
    "supplier-delivery": ResourceDefinition(
        name="supplier-delivery",
        resource_type="Supplier delivery",
        path="/supplier-deliveries",
        name_fields="number",
        actions={
            "createReceipt": ActionDefinition(
                method=HttpMethod.POST,
                path="/supplier-deliveries/{id}/receipt",
                send_fields=True,
            ),
            "deleteReceipt": ActionDefinition(
                method=HttpMethod.DELETE,
                path="/supplier-deliveries/{id}/receipt/{receipt_id}",
            ),
        },
    ),
    "diverse-operations": ResourceDefinition(
        name="diverse-operations",
        resource_type="Diverse operation",
        path="/diverse-operations",
        name_fields="label",
    ),
    # =========================================================================
    # Projects and time
    # =========================================================================
    "project": ResourceDefinition(
        name="project",
        resource_type="Project",
        path="/projects",
        operations=CRUD_UPSERT,
    ),
    "task": ResourceDefinition(
        name="task",
        resource_type="Task",
        path="/tasks",
        operations=["create", "get", "getAll", "delete", "search"],
        name_fields="title",
    ),
    "timetracking": ResourceDefinition(
        name="timetracking",
        resource_type="Timetracking",
        path="/timetrackings",
        operations=["create", "get", "getAll", "delete", "search"],
        has_get_endpoint=False,
        name_fields=timetracking_label,
        actions={
            "getTaskTimetrackings": _listing("/tasks/{task_id}/timetrackings"),
            "getTicketTimetrackings": _listing("/tickets/{ticket_id}/timetrackings"),
        },
    ),
    "document": ResourceDefinition(
        name="document",
        resource_type="Document",
        path="/documents",
        operations=["create", "get", "search"],
        create_path="/companies/{company_id}/documents",
        name_fields=document_label,
        search_parent_path="/companies",
        search_child_path="/companies/{parent_id}/documents",
        search_parent_limit=50,
        actions={
            "getCompanyDocuments": _listing("/companies/{company_id}/documents"),
            "download": ActionDefinition(path="/documents/{id}/download"),
            "update": ActionDefinition(
                method=HttpMethod.PATCH,
                path="/companies/{company_id}/documents/{id}",
                send_fields=True,
            ),
        },
    ),
}


def get_resource(name: str) -> Optional[ResourceDefinition]:
    """Get a resource definition by its name."""
    return RESOURCE_CATALOG.get(name)


def list_resources() -> list[str]:
    """Names of every cataloged resource."""
    return sorted(RESOURCE_CATALOG)


def find_resources_by_operation(operation: str) -> list[ResourceDefinition]:
    """Find all resources supporting an operation or action."""
    return [
        definition for definition in RESOURCE_CATALOG.values()
        if definition.supports(operation)
    ]
