"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Invoice metrics
invoices_created_total = Counter(
    "invoices_created_total",
    "Total number of invoices created",
    labelnames=["invoice_type"],  # INTRA, INTER
)

invoices_deleted_total = Counter(
    "invoices_deleted_total",
    "Total number of invoices deleted",
)

invoice_number_collisions_total = Counter(
    "invoice_number_collisions_total",
    "Invoice number inserts rejected by the unique index and retried",
)

# Payment metrics
payments_recorded_total = Counter(
    "payments_recorded_total",
    "Total payments recorded",
    labelnames=["payment_method"],
)

payments_deleted_total = Counter(
    "payments_deleted_total",
    "Total payments deleted",
)

ledger_conflicts_total = Counter(
    "ledger_conflicts_total",
    "Ledger recomputations retried after a concurrent invoice update",
)
