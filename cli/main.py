import asyncio
import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from typing import Optional
from pathlib import Path

from finanzen.config import DEFAULT_MONTHS_TO_FORECAST, use_mock
from finanzen.data_loader import load_csv
from finanzen.exceptions import NarrativeError, SheetsError
from finanzen.formatting import format_currency
from finanzen.models import Category, FinancialData
from finanzen.processor import category_totals, items_frame, project_income, projection_frame, summarize
from finanzen.store import coerce_forecast

app = typer.Typer()
console = Console()

CATEGORY_TITLES = {
    Category.INCOME: "Suas Rendas Mensais",
    Category.EXPENSES: "Seus Gastos Essenciais",
    Category.DEBTS: "Suas Dívidas Ativas",
}

MONEY_HEADERS = {
    "Valor (R$)",
    "Valor do Empréstimo",
    "Saldo Devedor",
    "Valor da Parcela",
}


def load_data(csv_path: Optional[str], growth_rate: float, months: int) -> FinancialData:
    """Loads the CSV (or the bundled demo data) and attaches the forecast."""
    if csv_path is None:
        csv_path = str(Path(__file__).parent / "csv/sample.csv")
        console.print("[bold magenta]Running in DEMO MODE using sample data[/bold magenta]")

    if not Path(csv_path).exists():
        console.print(f"[bold red]Error: File not found: {csv_path}[/bold red]")
        raise typer.Exit(code=1)

    try:
        forecast = coerce_forecast({"growth_rate": growth_rate, "months_to_forecast": months})
        data = load_csv(csv_path, forecast=forecast)
    except ValueError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Loaded {sum(len(data.items(c)) for c in Category)} line items from {csv_path}[/bold green]")
    return data


@app.command()
def summary(
    csv_path: Optional[str] = typer.Option(None, "--csv", "-c", help="Path to the line-item CSV file. Defaults to demo data if not provided."),
    growth_rate: float = typer.Option(0.0, "--growth-rate", "-g", help="Expected annual income growth in percent"),
    months: int = typer.Option(DEFAULT_MONTHS_TO_FORECAST, "--months", "-m", help="Months to project income forward"),
):
    """
    Print line items, totals, payment capacity and the income projection.
    """
    data = load_data(csv_path, growth_rate, months)
    print_financial_data(data)
    print_totals(data)
    print_projection(data)


@app.command()
def analyze(
    csv_path: Optional[str] = typer.Option(None, "--csv", "-c", help="Path to the line-item CSV file. Defaults to demo data if not provided."),
    growth_rate: float = typer.Option(0.0, "--growth-rate", "-g", help="Expected annual income growth in percent"),
    months: int = typer.Option(DEFAULT_MONTHS_TO_FORECAST, "--months", "-m", help="Months to project income forward"),
    save: bool = typer.Option(False, "--save", help="Save data and diagnosis to a new Google spreadsheet"),
    token: Optional[str] = typer.Option(None, "--token", envvar="GOOGLE_ACCESS_TOKEN", help="Google OAuth access token used with --save"),
):
    """
    Request an AI diagnosis of the finances and optionally save it to Google Sheets.
    """
    from finanzen.gemini_client import GeminiClient, MockGeminiClient
    from finanzen.narrative import request_diagnosis

    if save and not token:
        console.print("[bold red]Error: --save requires --token (or GOOGLE_ACCESS_TOKEN).[/bold red]")
        raise typer.Exit(code=1)

    data = load_data(csv_path, growth_rate, months)
    print_totals(data)

    client = MockGeminiClient() if use_mock() else GeminiClient()
    console.print("[yellow]Aguarde, nossa IA está preparando seu diagnóstico financeiro...[/yellow]")
    try:
        diagnosis = asyncio.run(request_diagnosis(data, client.complete))
    except NarrativeError as e:
        console.print(f"[bold red]Diagnosis failed ({e.kind}): {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(Markdown(diagnosis.markdown))

    if save:
        if use_mock():
            from finanzen.mock_sheets_client import get_client
        else:
            from finanzen.sheets_client import get_client
        from finanzen.sheets_client import save_analysis

        console.print("[bold blue]Saving to Google Sheets...[/bold blue]")
        try:
            saved = save_analysis(get_client(token), data, diagnosis.markdown)
        except SheetsError as e:
            console.print(f"[bold red]Error: {e}[/bold red]")
            raise typer.Exit(code=1)
        console.print(f"[bold green]Análise salva! {saved.url}[/bold green]")


def print_financial_data(data: FinancialData):
    """Prints one rich table per category."""
    for category in Category:
        df = items_frame(data, category)
        table = Table(title=CATEGORY_TITLES[category])

        for col in df.columns:
            justify = "right" if col in MONEY_HEADERS or df[col].dtype.kind in "if" else "left"
            table.add_column(col, justify=justify, style="cyan" if col == "Descrição" else "white")

        for _, row in df.iterrows():
            values = []
            for col in df.columns:
                val = row[col]
                values.append(format_currency(val) if col in MONEY_HEADERS else str(val))
            table.add_row(*values)

        console.print(table)


def print_totals(data: FinancialData):
    sums = category_totals(data)
    totals = summarize(data)

    table = Table(title="Resumo Mensal")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Valor", justify="right")

    capacity_style = "bold green" if totals.payment_capacity >= 0 else "bold red"
    table.add_row("Total de Rendas", format_currency(totals.total_income), style="green")
    table.add_row("Gastos Essenciais", format_currency(sums.expenses))
    table.add_row("Parcelas de Dívidas", format_currency(sums.debts))
    table.add_row("Total de Despesas", format_currency(totals.total_expenses), style="red")
    table.add_row("Capacidade de Pagamento", format_currency(totals.payment_capacity), style=capacity_style)

    console.print(table)


def print_projection(data: FinancialData):
    totals = summarize(data)
    df = projection_frame(project_income(totals.total_income, data.income_forecast))
    if df.empty:
        console.print("[yellow]No income projection (growth rate, months and income must all be positive).[/yellow]")
        return

    forecast = data.income_forecast
    table = Table(title=f"Projeção de Renda ({forecast.growth_rate:g}% a.a., {forecast.months_to_forecast} meses)")
    table.add_column("Mês", justify="right", style="cyan")
    table.add_column("Período", no_wrap=True)
    table.add_column("Renda Projetada", justify="right", style="bold magenta")

    for _, row in df.iterrows():
        table.add_row(str(row['Month Index']), row['Label'], format_currency(row['Projected Income']))

    console.print(table)

if __name__ == "__main__":
    app()
