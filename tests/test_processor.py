import math
import itertools
import pandas as pd
import pytest
from finanzen.models import DebtItem, FinancialData, IncomeForecast, LineItem
from finanzen.processor import (
    category_totals,
    items_frame,
    monthly_rate,
    project_income,
    projection_frame,
    summarize,
)

@pytest.fixture
def data():
    return FinancialData(
        income=(LineItem(1, "Salário", 5000.0),),
        expenses=(LineItem(1, "Aluguel", 1500.0),),
        debts=(DebtItem(1, "Carro", 300.0, loan_amount=20000.0, outstanding_balance=15000.0),),
        income_forecast=IncomeForecast(growth_rate=12.0, months_to_forecast=12),
    )

def test_summarize_scenario(data):
    totals = summarize(data)

    assert totals.total_income == 5000
    # Installments count as expenses, balances and principals do not
    assert totals.total_expenses == 1800
    assert totals.payment_capacity == 3200

def test_category_totals(data):
    sums = category_totals(data)
    assert (sums.income, sums.expenses, sums.debts) == (5000, 1500, 300)

def test_negative_capacity_is_a_result():
    data = FinancialData(
        income=(LineItem(1, "Salário", 1000.0),),
        expenses=(LineItem(1, "Aluguel", 1200.0),),
        debts=(DebtItem(1, "Cartão", 100.0),),
    )
    assert summarize(data).payment_capacity == -300

def test_sum_invariant_under_order():
    amounts = [0.1, 1e16, 0.2, -0.0, 3.3, 1234.56]
    reference = None
    for perm in itertools.permutations(amounts):
        items = tuple(LineItem(i, "", a) for i, a in enumerate(perm, start=1))
        data = FinancialData(items, items, (DebtItem(1),))
        totals = summarize(data)
        if reference is None:
            reference = totals
        assert totals == reference

def test_zero_item_is_neutral(data):
    before = summarize(data)
    padded = FinancialData(
        data.income + (LineItem(2, "Extra", 0.0),),
        data.expenses + (LineItem(2, "", 0.0),),
        data.debts + (DebtItem(2, "Nova", 0.0, loan_amount=5000.0),),
        data.income_forecast,
    )
    assert summarize(padded) == before

def test_capacity_identity(data):
    totals = summarize(data)
    assert totals.payment_capacity == totals.total_income - totals.total_expenses

def test_summarize_does_not_mutate(data):
    snapshot = data.to_dict()
    summarize(data)
    assert data.to_dict() == snapshot

def test_monthly_rate_is_compound_not_simple():
    rate = monthly_rate(12)
    assert rate == pytest.approx(0.009489, abs=1e-6)
    assert rate < 12 / 100 / 12

def test_projection_scenario():
    points = project_income(5000, IncomeForecast(growth_rate=12, months_to_forecast=12))

    assert len(points) == 13
    assert [p.month_index for p in points] == list(range(13))
    assert points[0].projected_income == 5000
    assert points[-1].projected_income == pytest.approx(5600, rel=1e-9)

@pytest.mark.parametrize("income, growth, months", [
    (5000, 0, 12),
    (5000, -3, 12),
    (5000, 12, 0),
    (5000, 12, -4),
    (0, 12, 12),
])
def test_projection_short_circuit(income, growth, months):
    assert project_income(income, IncomeForecast(growth_rate=growth, months_to_forecast=months)) == []

def test_projection_strictly_increasing():
    points = project_income(3210.5, IncomeForecast(growth_rate=0.5, months_to_forecast=60))
    values = [p.projected_income for p in points]
    assert all(b > a for a, b in zip(values, values[1:]))

def test_projection_frame_labels():
    points = project_income(1000, IncomeForecast(growth_rate=10, months_to_forecast=3))
    df = projection_frame(points, start=pd.Timestamp("2026-10-19"))

    assert list(df['Label']) == ["out/26", "nov/26", "dez/26", "jan/27"]
    assert df['Month'].iloc[3] == pd.Timestamp("2027-01-19")
    # Values are not rounded
    assert df['Projected Income'].iloc[1] == points[1].projected_income

def test_projection_frame_empty():
    df = projection_frame([])
    assert df.empty
    assert 'Label' in df.columns

def test_items_frame_headers(data):
    df = items_frame(data, "debts")
    assert list(df.columns)[:3] == ["ID", "Descrição", "Valor do Empréstimo"]
    assert df['Valor da Parcela'].iloc[0] == 300.0

    income = items_frame(data, "income")
    assert list(income.columns) == ["ID", "Descrição", "Valor (R$)"]

def test_monthly_rate_tiny_growth_stays_positive():
    assert monthly_rate(1e-15) > 0
    assert monthly_rate(5e-324) > 0

def test_projection_tiny_growth_strictly_increasing():
    points = project_income(5000, IncomeForecast(growth_rate=1e-15, months_to_forecast=3))
    values = [p.projected_income for p in points]
    assert len(values) == 4
    assert values[0] == 5000
    assert all(a < b for a, b in zip(values, values[1:]))

@pytest.mark.parametrize("growth, months", [(12, 80000), (1e6, 1200)])
def test_projection_stops_before_float_overflow(growth, months):
    points = project_income(5000, IncomeForecast(growth_rate=growth, months_to_forecast=months))

    assert 1 < len(points) < months + 1
    values = [p.projected_income for p in points]
    assert all(math.isfinite(v) for v in values)
    assert all(a < b for a, b in zip(values, values[1:]))
