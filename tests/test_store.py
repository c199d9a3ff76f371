from __future__ import annotations

import logging

import pytest

from invoices import (
    CreateInvoice,
    DeleteInvoice,
    Invoice,
    InvoiceStatus,
    InvoiceStore,
    RejectReason,
    ToggleStatus,
    UpdateInvoice,
    ValidationError,
    sample_invoices,
)


@pytest.fixture
def store():
    return InvoiceStore(sample_invoices())


def test_seeded_store(store):
    assert len(store) == 4
    assert [i.id for i in store] == ["HD001", "HD002", "HD003", "HD004"]
    assert store.get("HD003").customer_name == "Hoang Van C"


def test_seed_with_duplicate_ids_is_rejected():
    inv = Invoice("HD001", "A", "B")
    with pytest.raises(ValidationError):
        InvoiceStore([inv, inv])


def test_submit_returns_and_keeps_snapshot(store):
    result = store.submit(CreateInvoice(Invoice("HD005", "Pham Van E", "Sản phẩm 5", 4, 2500)))
    assert result is store.invoices
    assert store.invoices[-1].id == "HD005"


def test_listeners_see_each_change(store):
    seen = []
    store.subscribe(seen.append)

    store.submit(ToggleStatus("HD002"))
    store.submit(DeleteInvoice("HD001"))

    assert len(seen) == 2
    assert seen[0][1].status is InvoiceStatus.PAID
    assert [i.id for i in seen[1]] == ["HD002", "HD003", "HD004"]


def test_noop_does_not_notify(store):
    seen = []
    store.subscribe(seen.append)
    before = store.invoices

    assert store.submit(DeleteInvoice("NOPE")) == before
    assert store.submit(ToggleStatus("NOPE")) == before
    assert seen == []


def test_rejection_leaves_state_and_is_logged(store, caplog):
    seen = []
    store.subscribe(seen.append)
    before = store.invoices

    with caplog.at_level(logging.WARNING, logger="invoicebook.invoices"):
        with pytest.raises(ValidationError) as exc:
            store.submit(CreateInvoice(Invoice("HD001", "Dup", "Dup")))

    assert exc.value.reason is RejectReason.DUPLICATE_ID
    assert store.invoices is before
    assert seen == []
    assert "Rejected CreateInvoice" in caplog.text


def test_update_unknown_id_leaves_state(store):
    before = store.invoices
    with pytest.raises(ValidationError) as exc:
        store.submit(UpdateInvoice(Invoice("HD999", "A", "B")))
    assert exc.value.reason is RejectReason.NOT_FOUND
    assert store.invoices is before


def test_unsubscribe(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    store.submit(ToggleStatus("HD001"))
    assert seen == []


def test_summary_tracks_changes(store):
    assert (store.summary().paid, store.summary().unpaid) == (2, 2)
    store.submit(ToggleStatus("HD002"))
    store.submit(ToggleStatus("HD003"))
    s = store.summary()
    assert (s.paid, s.unpaid) == (4, 0)
    assert s.paid + s.unpaid == len(store)


def test_empty_store():
    store = InvoiceStore()
    assert len(store) == 0
    assert store.get("HD001") is None
    store.submit(CreateInvoice(Invoice("HD001", "A", "B")))
    assert store.summary().unpaid == 1
