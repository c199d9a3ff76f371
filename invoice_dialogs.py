# invoice_dialogs.py
from __future__ import annotations

from typing import Optional, Union

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox, QDialog, QFormLayout, QHBoxLayout, QLabel, QLineEdit,
    QMessageBox, QPushButton, QVBoxLayout, QWidget
)

import settings
from invoices import (
    CreateInvoice, Invoice, InvoiceStatus, InvoiceStore, ToggleStatus,
    UpdateInvoice, ValidationError, parse_price, parse_quantity
)


def format_amount(value: Union[int, float]) -> str:
    """
    Display string for a money amount, e.g. '100,000 đ' or '0.3 đ'.
    Fractions are rounded to 2 places and trailing zeros dropped.
    """
    sep = "," if settings.get("ui.thousand_separators", True) else ""
    if isinstance(value, float) and not value.is_integer():
        text = f"{value:{sep}.2f}".rstrip("0").rstrip(".")
    else:
        text = f"{int(value):{sep}}"
    suffix = str(settings.get("ui.currency_suffix", "") or "")
    return f"{text} {suffix}" if suffix else text


def _title(text: str) -> QLabel:
    lbl = QLabel(text)
    lbl.setStyleSheet("font-size:18px; font-weight:600;")
    return lbl


# ---------- Add / Edit ----------
class InvoiceFormDialog(QDialog):
    """
    Add/edit form. Numeric fields are plain text and go through
    parse_quantity/parse_price, so the store never sees unparsable input.
    Save runs the operation against the store; a rejection keeps the
    dialog open.
    """

    def __init__(self, store: InvoiceStore, invoice: Optional[Invoice] = None, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.store = store
        self.is_edit = invoice is not None
        self.setWindowTitle("Edit invoice" if self.is_edit else "Add invoice")
        self.setMinimumWidth(420)

        v = QVBoxLayout(self)
        v.addWidget(_title(self.windowTitle()))

        form = QFormLayout()
        self.id_in = QLineEdit()
        self.id_in.setPlaceholderText("Invoice id, e.g. HD005")
        self.customer_in = QLineEdit()
        self.customer_in.setPlaceholderText("Customer name")
        self.product_in = QLineEdit()
        self.product_in.setPlaceholderText("Product name")
        self.quantity_in = QLineEdit("1")
        self.price_in = QLineEdit("0")
        self.status_in = QComboBox()
        self.status_in.addItems([s.value for s in InvoiceStatus])
        self.status_in.setCurrentText(InvoiceStatus.UNPAID.value)

        form.addRow("Invoice id:", self.id_in)
        form.addRow("Customer:", self.customer_in)
        form.addRow("Product:", self.product_in)
        form.addRow("Quantity:", self.quantity_in)
        form.addRow("Unit price:", self.price_in)
        form.addRow("Status:", self.status_in)
        v.addLayout(form)

        self.total_lbl = QLabel("")
        self.total_lbl.setAlignment(Qt.AlignRight)
        v.addWidget(self.total_lbl)

        bar = QHBoxLayout()
        bar.addStretch(1)
        self.btn_save = QPushButton("Save")
        self.btn_cancel = QPushButton("Cancel")
        bar.addWidget(self.btn_save)
        bar.addWidget(self.btn_cancel)
        v.addLayout(bar)

        if invoice is not None:
            self.load_invoice(invoice)

        self.quantity_in.textChanged.connect(self.update_total_label)
        self.price_in.textChanged.connect(self.update_total_label)
        self.btn_save.clicked.connect(self.save)
        self.btn_cancel.clicked.connect(self.reject)
        self.update_total_label()

    def load_invoice(self, inv: Invoice):
        self.id_in.setText(inv.id)
        # id comes from the selected record and is fixed while editing
        self.id_in.setReadOnly(True)
        self.customer_in.setText(inv.customer_name)
        self.product_in.setText(inv.product_name)
        self.quantity_in.setText(str(inv.quantity))
        self.price_in.setText(str(inv.price))
        self.status_in.setCurrentText(inv.status.value)

    def candidate(self) -> Invoice:
        return Invoice(
            id=self.id_in.text().strip(),
            customer_name=self.customer_in.text().strip(),
            product_name=self.product_in.text().strip(),
            quantity=parse_quantity(self.quantity_in.text()),
            price=parse_price(self.price_in.text()),
            status=InvoiceStatus.from_label(self.status_in.currentText()),
        )

    def operation(self) -> Union[CreateInvoice, UpdateInvoice]:
        inv = self.candidate()
        return UpdateInvoice(inv) if self.is_edit else CreateInvoice(inv)

    def update_total_label(self, *_):
        self.total_lbl.setText(f"Total: <b>{format_amount(self.candidate().total)}</b>")

    def save(self) -> bool:
        try:
            self.store.submit(self.operation())
        except ValidationError as e:
            QMessageBox.warning(self, "Validation", e.message)
            return False
        self.accept()
        return True


# ---------- Details ----------
class InvoiceDetailDialog(QDialog):
    """Read-only view of one invoice with a paid/unpaid switch."""

    def __init__(self, store: InvoiceStore, invoice_id: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.store = store
        self.invoice_id = invoice_id
        self.setWindowTitle("Invoice details")
        self.setMinimumWidth(380)

        v = QVBoxLayout(self)
        v.addWidget(_title("Invoice details"))

        form = QFormLayout()
        self.lbl_id = QLabel()
        self.lbl_customer = QLabel()
        self.lbl_product = QLabel()
        self.lbl_quantity = QLabel()
        self.lbl_price = QLabel()
        self.lbl_total = QLabel()
        self.lbl_status = QLabel()
        form.addRow("Invoice id:", self.lbl_id)
        form.addRow("Customer:", self.lbl_customer)
        form.addRow("Product:", self.lbl_product)
        form.addRow("Quantity:", self.lbl_quantity)
        form.addRow("Unit price:", self.lbl_price)
        form.addRow("Total:", self.lbl_total)
        form.addRow("Status:", self.lbl_status)
        v.addLayout(form)

        bar = QHBoxLayout()
        self.btn_toggle = QPushButton("")
        self.btn_close = QPushButton("Close")
        bar.addWidget(self.btn_toggle)
        bar.addStretch(1)
        bar.addWidget(self.btn_close)
        v.addLayout(bar)

        self.btn_toggle.clicked.connect(self.toggle_status)
        self.btn_close.clicked.connect(self.accept)
        self.refresh()

    def refresh(self):
        inv = self.store.get(self.invoice_id)
        if inv is None:
            # deleted underneath us
            self.btn_toggle.setEnabled(False)
            self.lbl_status.setText("(deleted)")
            return
        self.lbl_id.setText(inv.id)
        self.lbl_customer.setText(inv.customer_name)
        self.lbl_product.setText(inv.product_name)
        self.lbl_quantity.setText(str(inv.quantity))
        self.lbl_price.setText(format_amount(inv.price))
        self.lbl_total.setText(format_amount(inv.total))
        self.lbl_status.setText(inv.status.value)
        self.btn_toggle.setText(f"Mark as {inv.status.toggled().value}")

    def toggle_status(self):
        self.store.submit(ToggleStatus(self.invoice_id))
        self.refresh()
