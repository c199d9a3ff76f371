# main.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView, QApplication, QCheckBox, QComboBox, QFormLayout,
    QHBoxLayout, QLabel, QLineEdit, QMainWindow, QMessageBox, QPushButton,
    QStackedWidget, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget
)

# Modules
import settings
from invoice_dialogs import InvoiceDetailDialog, InvoiceFormDialog, format_amount
from invoices import DeleteInvoice, InvoiceStatus, InvoiceStore, sample_invoices

logger = logging.getLogger("invoicebook")


def configure_logging() -> logging.Logger:
    """
    Rotating file log under the configured log dir. Safe to call twice.
    With no usable log dir the records go to stderr instead.
    """
    root = logging.getLogger("invoicebook")
    if not root.handlers:
        problem = None
        try:
            handler: logging.Handler = RotatingFileHandler(
                settings.get_log_dir() / "invoicebook.log",
                maxBytes=1_000_000,
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as e:
            problem = e
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)
        root.propagate = False
        if problem is not None:
            root.warning("No log file available (%s); logging to stderr", problem)
    level = str(settings.get("general.log_level", "INFO")).upper()
    root.setLevel(getattr(logging, level, logging.INFO))
    logging.captureWarnings(True)
    return root


def follow_store(widget: QWidget, store: InvoiceStore, on_change):
    """Subscribe on_change to store updates until the widget is destroyed."""
    unsubscribe = store.subscribe(lambda _invoices: on_change())
    widget.destroyed.connect(lambda *_: unsubscribe())
    return unsubscribe


# ---------- Page header: title, count/info text, Back ----------
class Header(QWidget):
    def __init__(self, title: str, on_back, info: str = ""):
        super().__init__()
        h = QHBoxLayout(self)
        self.title_lbl = QLabel(title)
        self.title_lbl.setStyleSheet("font-size:18px; font-weight:600;")
        self.info_lbl = QLabel(info)
        self.info_lbl.setStyleSheet("color:#666;")
        back = QPushButton("⟵ Dashboard")
        back.clicked.connect(on_back)
        h.addWidget(self.title_lbl)
        h.addWidget(self.info_lbl, 1)
        h.addWidget(back, 0, Qt.AlignRight)

    def set_info(self, text: str):
        self.info_lbl.setText(text)


# ---------- Dashboard ----------
class Dashboard(QWidget):
    """Start page: paid/unpaid overview plus the main navigation buttons."""

    def __init__(self, store: InvoiceStore, on_new, on_manage, on_settings, on_exit):
        super().__init__()
        self.store = store
        v = QVBoxLayout(self)

        title = QLabel("Invoice Book")
        title.setStyleSheet("font-size:22px; font-weight:700;")
        v.addWidget(title)

        self.lbl_summary = QLabel("")
        self.lbl_summary.setStyleSheet("font-size:16px;")
        v.addWidget(self.lbl_summary)
        self.lbl_outstanding = QLabel("")
        v.addWidget(self.lbl_outstanding)
        v.addSpacing(12)

        row = QHBoxLayout()
        buttons = [
            ("➕  New Invoice", on_new),
            ("🗂️  Manage Invoices", on_manage),
            ("⚙️  Settings", on_settings),
            ("⏻  Exit", on_exit),
        ]
        for text, slot in buttons:
            b = QPushButton(text)
            b.setMinimumHeight(44)
            b.clicked.connect(slot)
            row.addWidget(b)
        v.addLayout(row)
        v.addStretch(1)

        self._unsubscribe = follow_store(self, store, self.refresh)
        self.refresh()

    def refresh(self):
        counts = self.store.summary()
        self.lbl_summary.setText(
            f"{len(self.store)} invoices  ·  Paid: {counts.paid}  ·  Unpaid: {counts.unpaid}"
        )
        outstanding = sum(i.total for i in self.store if i.status is InvoiceStatus.UNPAID)
        self.lbl_outstanding.setText(f"Outstanding: {format_amount(outstanding)}")


# ---------- Invoice list ----------
class InvoiceListPage(QWidget):
    COLUMNS = ["Invoice id", "Customer", "Total", "Status"]

    def __init__(self, store: InvoiceStore, on_back):
        super().__init__()
        self.store = store

        v = QVBoxLayout(self)
        self.header = Header("Invoices", on_back)
        v.addWidget(self.header)

        summary = QHBoxLayout()
        self.lbl_paid = QLabel("")
        self.lbl_unpaid = QLabel("")
        for lbl in (self.lbl_paid, self.lbl_unpaid):
            lbl.setStyleSheet("font-size:16px; font-weight:600;")
            summary.addWidget(lbl)
        summary.addStretch(1)
        v.addLayout(summary)

        actions = QHBoxLayout()
        self.btn_add = QPushButton("Add invoice")
        self.btn_edit = QPushButton("Edit")
        self.btn_delete = QPushButton("Delete")
        self.btn_details = QPushButton("Details")
        actions.addWidget(self.btn_add)
        actions.addStretch(1)
        for b in (self.btn_details, self.btn_edit, self.btn_delete):
            actions.addWidget(b)
        v.addLayout(actions)

        self.table = QTableWidget(0, len(self.COLUMNS))
        self.table.setHorizontalHeaderLabels(self.COLUMNS)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        v.addWidget(self.table)

        self.btn_add.clicked.connect(self.add_invoice)
        self.btn_edit.clicked.connect(self.edit_selected)
        self.btn_delete.clicked.connect(self.delete_selected)
        self.btn_details.clicked.connect(self.show_selected)
        self.table.cellDoubleClicked.connect(lambda row, _col: self.show_details(self._id_at(row)))

        self._unsubscribe = follow_store(self, store, self.refresh)
        self.refresh()

    # ---- rendering ----
    def refresh(self):
        selected = self.selected_id()
        self.table.setRowCount(0)
        for inv in self.store:
            r = self.table.rowCount()
            self.table.insertRow(r)
            self.table.setItem(r, 0, QTableWidgetItem(inv.id))
            self.table.setItem(r, 1, QTableWidgetItem(inv.customer_name))
            total = QTableWidgetItem(format_amount(inv.total))
            total.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
            self.table.setItem(r, 2, total)
            self.table.setItem(r, 3, QTableWidgetItem(inv.status.value))
            if inv.id == selected:
                self.table.selectRow(r)

        counts = self.store.summary()
        self.lbl_paid.setText(f"Paid: {counts.paid}")
        self.lbl_unpaid.setText(f"Unpaid: {counts.unpaid}")
        self.header.set_info(f"{len(self.store)} total")

    def _id_at(self, row: int) -> Optional[str]:
        item = self.table.item(row, 0)
        return item.text() if item is not None else None

    def selected_id(self) -> Optional[str]:
        rows = self.table.selectionModel().selectedRows() if self.table.selectionModel() else []
        if not rows:
            return None
        return self._id_at(rows[0].row())

    def _require_selection(self) -> Optional[str]:
        invoice_id = self.selected_id()
        if invoice_id is None:
            QMessageBox.information(self, "Info", "Select an invoice first.")
        return invoice_id

    # ---- actions ----
    def add_invoice(self):
        InvoiceFormDialog(self.store, parent=self).exec()

    def edit_selected(self):
        invoice_id = self._require_selection()
        if invoice_id is None:
            return
        inv = self.store.get(invoice_id)
        if inv is not None:
            InvoiceFormDialog(self.store, inv, parent=self).exec()

    def delete_selected(self):
        invoice_id = self._require_selection()
        if invoice_id is None:
            return
        self.confirm_delete(invoice_id)

    def confirm_delete(self, invoice_id: str) -> bool:
        res = QMessageBox.question(
            self,
            "Confirm",
            f"Are you sure you want to delete invoice {invoice_id}?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if res != QMessageBox.Yes:
            return False
        self.store.submit(DeleteInvoice(invoice_id))
        return True

    def show_selected(self):
        invoice_id = self._require_selection()
        if invoice_id is not None:
            self.show_details(invoice_id)

    def show_details(self, invoice_id: Optional[str]):
        if invoice_id is None:
            return
        InvoiceDetailDialog(self.store, invoice_id, parent=self).exec()


# ---------- Settings page (reads/writes settings.py) ----------
class SettingsPage(QWidget):
    def __init__(self, on_back, on_changed=None):
        super().__init__()
        self._guard = False  # suppress feedback loops while initializing
        self._on_changed = on_changed

        v = QVBoxLayout(self)
        v.addWidget(Header("Settings", on_back))
        v.addSpacing(8)

        form = QFormLayout()
        self.chk_seed = QCheckBox("Start with sample invoices")
        form.addRow("", self.chk_seed)

        self.chk_thousands = QCheckBox("Use thousand separators for money")
        form.addRow("", self.chk_thousands)

        self.in_suffix = QLineEdit()
        self.in_suffix.setMaxLength(8)
        form.addRow("Currency suffix:", self.in_suffix)

        self.sel_log_level = QComboBox()
        self.sel_log_level.addItems(list(settings.LOG_LEVELS))
        form.addRow("Log level:", self.sel_log_level)

        self.in_log_dir = QLineEdit()
        self.in_log_dir.setReadOnly(True)
        form.addRow("Log folder:", self.in_log_dir)

        v.addLayout(form)
        v.addStretch(1)

        self.load_into_controls()

        # save immediately
        self.chk_seed.toggled.connect(self._save_seed)
        self.chk_thousands.toggled.connect(self._save_thousands)
        self.in_suffix.editingFinished.connect(self._save_suffix)
        self.sel_log_level.currentTextChanged.connect(self._save_log_level)

    def load_into_controls(self):
        self._guard = True
        try:
            self.chk_seed.setChecked(bool(settings.get("general.seed_sample_invoices", True)))
            self.chk_thousands.setChecked(bool(settings.get("ui.thousand_separators", True)))
            self.in_suffix.setText(str(settings.get("ui.currency_suffix", "")))
            level = str(settings.get("general.log_level", "INFO")).upper()
            idx = self.sel_log_level.findText(level)
            self.sel_log_level.setCurrentIndex(idx if idx != -1 else self.sel_log_level.findText("INFO"))
            self.in_log_dir.setText(str(settings.get("general.log_dir", "")))
        finally:
            self._guard = False

    def _changed(self):
        if self._on_changed is not None:
            self._on_changed()

    def _save_seed(self):
        if self._guard: return
        settings.set_("general.seed_sample_invoices", bool(self.chk_seed.isChecked()))

    def _save_thousands(self):
        if self._guard: return
        settings.set_("ui.thousand_separators", bool(self.chk_thousands.isChecked()))
        self._changed()

    def _save_suffix(self):
        if self._guard: return
        settings.set_("ui.currency_suffix", self.in_suffix.text().strip())
        self._changed()

    def _save_log_level(self, level: str):
        if self._guard: return
        settings.set_("general.log_level", level)
        logging.getLogger("invoicebook").setLevel(getattr(logging, level, logging.INFO))


# ---------- Shell ----------
class MainWindow(QMainWindow):
    def __init__(self, store: InvoiceStore):
        super().__init__()
        self.store = store
        self.setWindowTitle("Invoice Book")
        self.resize(1000, 680)

        self.stack = QStackedWidget()
        self.setCentralWidget(self.stack)

        self.page_dashboard = Dashboard(
            store,
            on_new=self.new_invoice,
            on_manage=lambda: self.stack.setCurrentWidget(self.page_invoices),
            on_settings=lambda: self.stack.setCurrentWidget(self.page_settings),
            on_exit=self.close,
        )
        self.page_invoices = InvoiceListPage(store, on_back=lambda: self.stack.setCurrentWidget(self.page_dashboard))
        self.page_settings = SettingsPage(
            on_back=lambda: self.stack.setCurrentWidget(self.page_dashboard),
            on_changed=self.refresh_pages,
        )

        for p in (self.page_dashboard, self.page_invoices, self.page_settings):
            self.stack.addWidget(p)

        self.stack.setCurrentWidget(self.page_dashboard)

    def refresh_pages(self):
        self.page_dashboard.refresh()
        self.page_invoices.refresh()

    def new_invoice(self):
        self.stack.setCurrentWidget(self.page_invoices)
        self.page_invoices.add_invoice()


def build_store() -> InvoiceStore:
    if settings.get("general.seed_sample_invoices", True):
        return InvoiceStore(sample_invoices())
    return InvoiceStore()


def main():
    configure_logging()
    app = QApplication(sys.argv)
    store = build_store()
    logger.info("Starting with %d invoices", len(store))
    w = MainWindow(store)
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
