import pytest
from finanzen.data_loader import load_csv
from finanzen.models import DebtItem, IncomeForecast
from finanzen.processor import summarize

@pytest.fixture
def csv_path(tmp_path):
    csv_content = """category,description,amount,loan_amount,outstanding_balance,total_installments,monthly_interest_rate,annual_interest_rate,start_date,end_date
income,Salário,"5.000,00",,,,,,,
Renda,Freelance,abc,,,,,,,
expenses,Aluguel,1500,,,,,,,
dívida,Carro,300,20000,15000,48,1.5,19.56,2024-03-10,2028-03-10
"""
    p = tmp_path / "items.csv"
    p.write_text(csv_content, encoding="utf-8")
    return str(p)

def test_load_csv_categories(csv_path):
    data = load_csv(csv_path)

    assert [item.description for item in data.income] == ["Salário", "Freelance"]
    assert [item.description for item in data.expenses] == ["Aluguel"]
    assert isinstance(data.debts[0], DebtItem)

def test_load_csv_normalises_amounts(csv_path):
    data = load_csv(csv_path)

    assert data.income[0].amount == 5000.0
    # Unparsable amount defaults to zero
    assert data.income[1].amount == 0.0

    debt = data.debts[0]
    assert debt.loan_amount == 20000.0
    assert debt.total_installments == 48
    assert debt.end_date == "2028-03-10"

def test_load_csv_totals(csv_path):
    totals = summarize(load_csv(csv_path))
    assert (totals.total_income, totals.total_expenses, totals.payment_capacity) == (5000, 1800, 3200)

def test_load_csv_attaches_forecast(csv_path):
    data = load_csv(csv_path, forecast=IncomeForecast(growth_rate=5, months_to_forecast=6))
    assert data.income_forecast == IncomeForecast(5, 6)

def test_load_csv_without_debt_columns(tmp_path):
    p = tmp_path / "simple.csv"
    p.write_text("CATEGORY,DESCRIPTION,AMOUNT\nincome,Salário,2000\n", encoding="utf-8")

    data = load_csv(str(p))
    assert data.income[0].amount == 2000.0
    # Empty categories keep one default row
    assert len(data.expenses) == 1 and data.expenses[0].amount == 0
    assert len(data.debts) == 1

def test_load_csv_missing_columns(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("DATE,AMOUNT\n2024-01-01,10\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Error loading CSV"):
        load_csv(str(p))

def test_load_csv_unknown_category(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("CATEGORY,DESCRIPTION,AMOUNT\nsavings,Poupança,100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unknown category"):
        load_csv(str(p))
