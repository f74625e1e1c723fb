from __future__ import annotations

import copy

from ssotica_receivables.models import Installment
from ssotica_receivables.selection import filter_eligible, is_eligible, order_by_urgency, select_current


OPEN = "aberto"
OVERDUE = "atraso"


def test_filter_keeps_open_and_overdue_with_well_formed_dates() -> None:
    records = [
        {"status": "Em Aberto", "dueDate": "25/12/2024", "amount": "100,00"},
        {"status": "Pago", "dueDate": "20/11/2024", "amount": "50,00"},
        {"status": "EM ATRASO", "dueDate": "01/01/2024", "amount": "75,00"},
        # right shape, impossible date: kept here, ordering deals with it
        {"status": "Em Aberto", "dueDate": "30/02/2024", "amount": "200,00"},
        {"status": "Em Aberto", "dueDate": "15-12-2024", "amount": "120,00"},
        {"status": "Pendente", "dueDate": "10/10/2024", "amount": "90,00"},
    ]
    assert filter_eligible(records, OPEN, OVERDUE) == [records[0], records[2], records[3]]


def test_filter_returns_empty_when_nothing_matches() -> None:
    records = [
        {"status": "Pago", "dueDate": "20/11/2024"},
        {"status": "Em Aberto", "dueDate": "15-12-2024"},
    ]
    assert filter_eligible(records, OPEN, OVERDUE) == []


def test_filter_handles_none_and_empty_input() -> None:
    assert filter_eligible(None, OPEN, OVERDUE) == []
    assert filter_eligible([], OPEN, OVERDUE) == []


def test_filter_treats_missing_status_or_due_date_as_ineligible() -> None:
    records = [
        {"status": "Em Aberto"},
        {"dueDate": "25/12/2024"},
        {"status": None, "dueDate": "25/12/2024"},
        {"status": "Em Aberto", "dueDate": "25/12/2024"},
    ]
    assert filter_eligible(records, OPEN, OVERDUE) == [records[3]]


def test_eligibility_ignores_amount_and_description() -> None:
    a = Installment(status="PAGO EM ATRASO", due_date="05/03/2024", amount="", description="")
    b = Installment(status="PAGO EM ATRASO", due_date="05/03/2024", amount="R$ 1,00", description="x")
    assert is_eligible(a, OPEN, OVERDUE) is True
    assert is_eligible(b, OPEN, OVERDUE) is True


def test_eligibility_requires_exact_date_shape() -> None:
    for due in ("1/01/2024", "01/01/24", " 01/01/2024", "01/01/2024 ", "01/01/2024\n", "2024-01-01", ""):
        assert not is_eligible({"status": "em aberto", "dueDate": due}, OPEN, OVERDUE), due


def test_filter_does_not_mutate_input() -> None:
    records = [{"status": "Pago", "dueDate": "01/01/2024"}, {"status": "Em Aberto", "dueDate": "02/01/2024"}]
    before = copy.deepcopy(records)
    _ = filter_eligible(records, OPEN, OVERDUE)
    assert records == before


def test_order_sorts_by_due_date() -> None:
    records = [
        {"dueDate": "25/12/2024", "id": 1},
        {"dueDate": "01/01/2024", "id": 2},
        {"dueDate": "15/06/2024", "id": 3},
    ]
    assert [r["id"] for r in order_by_urgency(records)] == [2, 3, 1]


def test_order_moves_impossible_calendar_dates_last() -> None:
    records = [
        {"dueDate": "25/12/2024", "id": 1},
        {"dueDate": "30/02/2024", "id": 2},
        {"dueDate": "01/01/2024", "id": 3},
    ]
    assert [r["dueDate"] for r in order_by_urgency(records)] == ["01/01/2024", "25/12/2024", "30/02/2024"]


def test_order_keeps_relative_order_of_invalid_dates() -> None:
    records = [
        {"dueDate": "25/12/2024", "id": 1},
        {"dueDate": "gibberish", "id": 2},
        {"dueDate": "01/01/2024", "id": 3},
        {"dueDate": "31/04/2024", "id": 4},
        {"dueDate": "another_invalid", "id": 5},
    ]
    assert [r["id"] for r in order_by_urgency(records)] == [3, 1, 2, 4, 5]


def test_order_is_stable_for_equal_dates() -> None:
    records = [
        {"dueDate": "25/12/2024", "id": 1},
        {"dueDate": "01/01/2024", "id": 2},
        {"dueDate": "25/12/2024", "id": 3},
    ]
    assert [r["id"] for r in order_by_urgency(records)] == [2, 1, 3]


def test_order_handles_none_empty_and_single() -> None:
    assert order_by_urgency(None) == []
    assert order_by_urgency([]) == []
    only = [{"dueDate": "01/01/2025", "id": 1}]
    assert order_by_urgency(only) == only


def test_order_is_a_permutation_and_idempotent() -> None:
    records = [
        Installment(sale_id="1", due_date="29/02/2023", status="em aberto"),
        Installment(sale_id="2", due_date="29/02/2024", status="em aberto"),
        Installment(sale_id="3", due_date="10/01/2024", status="em atraso"),
        Installment(sale_id="4", due_date="10/01/2024", status="em aberto"),
    ]
    before = list(records)
    once = order_by_urgency(records)
    assert records == before
    assert sorted(r.sale_id for r in once) == ["1", "2", "3", "4"]
    assert [r.sale_id for r in once] == ["3", "4", "2", "1"]
    assert order_by_urgency(once) == once


def test_select_current_picks_earliest_open_or_overdue() -> None:
    records = [
        Installment(status="Em Aberto", due_date="25/12/2024"),
        Installment(status="Pago", due_date="20/11/2024"),
        Installment(status="EM ATRASO", due_date="01/01/2024"),
    ]
    current = select_current(records, OPEN, OVERDUE)
    assert current is not None
    assert current.due_date == "01/01/2024"


def test_select_current_none_when_nothing_eligible() -> None:
    assert select_current([Installment(status="Pago", due_date="01/01/2024")], OPEN, OVERDUE) is None
    assert select_current(None, OPEN, OVERDUE) is None
