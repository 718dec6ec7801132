import os
import pytest
from typer.testing import CliRunner
from cli.main import app

runner = CliRunner()

@pytest.fixture
def csv_path(tmp_path):
    """Creates a temporary CSV file with test data."""
    csv_content = """CATEGORY,DESCRIPTION,AMOUNT,LOAN_AMOUNT,OUTSTANDING_BALANCE,TOTAL_INSTALLMENTS,MONTHLY_INTEREST_RATE,ANNUAL_INTEREST_RATE,START_DATE,END_DATE
income,Salário,5000.00,,,,,,,
expenses,Aluguel,1500.00,,,,,,,
debts,Carro,300.00,20000,15000,48,1.5,19.56,2024-03-10,2028-03-10
"""
    p = tmp_path / "items.csv"
    p.write_text(csv_content, encoding="utf-8")
    return str(p)

@pytest.fixture
def mock_mode(monkeypatch):
    monkeypatch.setenv("FINANZEN_USE_MOCK", "true")

def test_summary_e2e(csv_path):
    result = runner.invoke(app, ["summary", "--csv", csv_path, "--growth-rate", "12", "--months", "12"])

    assert result.exit_code == 0
    assert "Loaded 3 line items" in result.stdout
    assert "Capacidade de Pagamento" in result.stdout
    assert "R$ 3.200,00" in result.stdout
    assert "R$ 1.800,00" in result.stdout
    # Month 12 of a 12% a.a. projection
    assert "R$ 5.600,00" in result.stdout

def test_summary_without_growth(csv_path):
    result = runner.invoke(app, ["summary", "--csv", csv_path])
    assert result.exit_code == 0
    assert "No income projection" in result.stdout

def test_summary_demo_mode():
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 0
    assert "DEMO MODE" in result.stdout

def test_summary_missing_file(tmp_path):
    result = runner.invoke(app, ["summary", "--csv", str(tmp_path / "missing.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.stdout

def test_analyze_mock(csv_path, mock_mode):
    result = runner.invoke(app, ["analyze", "--csv", csv_path])
    assert result.exit_code == 0
    assert "Panorama Geral" in result.stdout

def test_analyze_save_requires_token(csv_path, mock_mode, monkeypatch):
    monkeypatch.delenv("GOOGLE_ACCESS_TOKEN", raising=False)
    result = runner.invoke(app, ["analyze", "--csv", csv_path, "--save"])
    assert result.exit_code == 1
    assert "--save requires --token" in result.stdout

def test_analyze_save_mock(csv_path, mock_mode):
    result = runner.invoke(app, ["analyze", "--csv", csv_path, "--save", "--token", "mock-token"])
    assert result.exit_code == 0
    assert "Análise salva!" in result.stdout
    assert os.path.exists(csv_path)
