# invoices.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from math import isfinite
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger("invoicebook.invoices")

DEFAULT_QUANTITY = 1
DEFAULT_PRICE = 0

REQUIRED_FIELDS = ("id", "customer_name", "product_name")


# ---------- Domain ----------
class InvoiceStatus(Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"

    def toggled(self) -> "InvoiceStatus":
        return InvoiceStatus.UNPAID if self is InvoiceStatus.PAID else InvoiceStatus.PAID

    @classmethod
    def from_label(cls, text: str) -> "InvoiceStatus":
        """Map a display label ("paid", " Unpaid ") to a member."""
        wanted = (text or "").strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(f"Unknown invoice status: {text!r}")


@dataclass(frozen=True)
class Invoice:
    id: str
    customer_name: str
    product_name: str
    quantity: int = DEFAULT_QUANTITY
    price: Union[int, float] = DEFAULT_PRICE
    status: InvoiceStatus = InvoiceStatus.UNPAID

    @property
    def total(self) -> Union[int, float]:
        return self.quantity * self.price

    def replace(self, **changes) -> "Invoice":
        return replace(self, **changes)


def sample_invoices() -> Tuple[Invoice, ...]:
    """Seed data shown on a fresh start."""
    return (
        Invoice("HD001", "Nguyen Van A", "Sản phẩm 1", 2, 50000, InvoiceStatus.PAID),
        Invoice("HD002", "Tran Thi B", "Sản phẩm 2", 1, 120000, InvoiceStatus.UNPAID),
        Invoice("HD003", "Hoang Van C", "Sản phẩm 3", 1, 10000, InvoiceStatus.UNPAID),
        Invoice("HD004", "Le Thi D", "Sản phẩm 4", 3, 75000, InvoiceStatus.PAID),
    )


# ---------- Input conversion ----------
def parse_quantity(text: str) -> int:
    """
    Integer quantity from raw form text.
    Empty, non-numeric and zero input all fall back to DEFAULT_QUANTITY.
    """
    try:
        value = int(str(text).strip())
    except (TypeError, ValueError):
        return DEFAULT_QUANTITY
    return value or DEFAULT_QUANTITY


def parse_price(text: str) -> Union[int, float]:
    """Unit price from raw form text; unparsable input gives DEFAULT_PRICE."""
    raw = str(text).strip().replace(",", "")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_PRICE
    if not isfinite(value):
        return DEFAULT_PRICE
    return int(value) if value.is_integer() else value


# ---------- Errors ----------
class RejectReason(Enum):
    MISSING_FIELD = "missing_field"
    DUPLICATE_ID = "duplicate_id"
    NOT_FOUND = "not_found"


class InvoiceError(Exception):
    """Base class for invoice engine errors."""


class ValidationError(InvoiceError):
    """An operation was rejected; the collection is unchanged."""

    def __init__(self, reason: RejectReason, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.fields = tuple(fields)


# ---------- Operations ----------
@dataclass(frozen=True)
class CreateInvoice:
    invoice: Invoice


@dataclass(frozen=True)
class UpdateInvoice:
    invoice: Invoice


@dataclass(frozen=True)
class DeleteInvoice:
    invoice_id: str


@dataclass(frozen=True)
class ToggleStatus:
    invoice_id: str


Operation = Union[CreateInvoice, UpdateInvoice, DeleteInvoice, ToggleStatus]


def _check_required(inv: Invoice) -> None:
    missing = [name for name in REQUIRED_FIELDS if not getattr(inv, name)]
    if missing:
        raise ValidationError(
            RejectReason.MISSING_FIELD,
            "Please fill in all required fields: " + ", ".join(missing) + ".",
            missing,
        )


def _create(invoices: Tuple[Invoice, ...], inv: Invoice) -> Tuple[Invoice, ...]:
    _check_required(inv)
    if any(i.id == inv.id for i in invoices):
        raise ValidationError(RejectReason.DUPLICATE_ID, f"Invoice id {inv.id} already exists.")
    return invoices + (inv,)


def _update(invoices: Tuple[Invoice, ...], inv: Invoice) -> Tuple[Invoice, ...]:
    _check_required(inv)
    if not any(i.id == inv.id for i in invoices):
        raise ValidationError(RejectReason.NOT_FOUND, f"Invoice id {inv.id} does not exist.")
    return tuple(inv if i.id == inv.id else i for i in invoices)


def _delete(invoices: Tuple[Invoice, ...], invoice_id: str) -> Tuple[Invoice, ...]:
    return tuple(i for i in invoices if i.id != invoice_id)


def _toggle(invoices: Tuple[Invoice, ...], invoice_id: str) -> Tuple[Invoice, ...]:
    return tuple(
        i.replace(status=i.status.toggled()) if i.id == invoice_id else i
        for i in invoices
    )


def apply(invoices: Sequence[Invoice], op: Operation) -> Tuple[Invoice, ...]:
    """
    Apply one operation and return the resulting collection.
    The input is never modified; a rejected operation raises ValidationError.
    """
    current = tuple(invoices)
    if isinstance(op, CreateInvoice):
        return _create(current, op.invoice)
    if isinstance(op, UpdateInvoice):
        return _update(current, op.invoice)
    if isinstance(op, DeleteInvoice):
        return _delete(current, op.invoice_id)
    if isinstance(op, ToggleStatus):
        return _toggle(current, op.invoice_id)
    raise TypeError(f"Unsupported invoice operation: {op!r}")


# ---------- Queries ----------
@dataclass(frozen=True)
class StatusSummary:
    paid: int
    unpaid: int


def count_by_status(invoices: Sequence[Invoice], status: InvoiceStatus) -> int:
    return sum(1 for i in invoices if i.status is status)


def status_summary(invoices: Sequence[Invoice]) -> StatusSummary:
    return StatusSummary(
        paid=count_by_status(invoices, InvoiceStatus.PAID),
        unpaid=count_by_status(invoices, InvoiceStatus.UNPAID),
    )


def total_amount(inv: Invoice) -> Union[int, float]:
    return inv.quantity * inv.price


def find_invoice(invoices: Sequence[Invoice], invoice_id: str) -> Optional[Invoice]:
    for i in invoices:
        if i.id == invoice_id:
            return i
    return None


# ---------- Store ----------
Listener = Callable[[Tuple[Invoice, ...]], None]


class InvoiceStore:
    """
    Owns the invoice collection. Every change goes through submit(), which
    runs one operation to completion and then tells subscribers about the
    new snapshot. Pages and dialogs get the store passed in explicitly.
    """

    def __init__(self, initial: Sequence[Invoice] = ()):
        self._listeners: List[Listener] = []
        # seed goes through create so the id invariant holds from the start
        snapshot: Tuple[Invoice, ...] = ()
        for inv in initial:
            snapshot = apply(snapshot, CreateInvoice(inv))
        self._invoices = snapshot

    @property
    def invoices(self) -> Tuple[Invoice, ...]:
        return self._invoices

    def __len__(self) -> int:
        return len(self._invoices)

    def __iter__(self) -> Iterator[Invoice]:
        return iter(self._invoices)

    def get(self, invoice_id: str) -> Optional[Invoice]:
        return find_invoice(self._invoices, invoice_id)

    def summary(self) -> StatusSummary:
        return status_summary(self._invoices)

    def submit(self, op: Operation) -> Tuple[Invoice, ...]:
        try:
            updated = apply(self._invoices, op)
        except ValidationError as e:
            logger.warning("Rejected %s: %s", type(op).__name__, e.message)
            raise

        if updated == self._invoices:
            logger.debug("%s left the collection unchanged", type(op).__name__)
            return self._invoices

        self._invoices = updated
        logger.info("Applied %s (%d invoices)", type(op).__name__, len(updated))
        for listener in list(self._listeners):
            listener(updated)
        return updated

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
