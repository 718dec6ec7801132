import gspread
import pandas as pd
import requests
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union
from gspread.exceptions import GSpreadException, WorksheetNotFound
from rich.console import Console

from finanzen.auth import Token
from finanzen.config import SHEET_NAMES, SPREADSHEET_TITLE_PREFIX
from finanzen.exceptions import SheetsError
from finanzen.models import Category, FinancialData
from finanzen.processor import columns_for, items_frame, project_income, projection_frame, summarize
from finanzen.store import from_dict

console = Console()

CATEGORY_SHEETS = {
    Category.INCOME: SHEET_NAMES["income"],
    Category.EXPENSES: SHEET_NAMES["expenses"],
    Category.DEBTS: SHEET_NAMES["debts"],
}

SUMMARY_LABELS = {
    "total_income": "Total de Rendas",
    "total_expenses": "Total de Despesas",
    "payment_capacity": "Capacidade de Pagamento",
    "growth_rate": "Crescimento Anual (%)",
    "months_to_forecast": "Meses de Projeção",
}

DATE_FIELDS = ("start_date", "end_date")


@dataclass(frozen=True)
class SavedSheet:
    spreadsheet_id: str
    url: str


def get_client(token: Union[Token, str]):
    """Authorizes gspread with the user's OAuth access token."""
    if isinstance(token, str):
        token = Token(access_token=token)
    return gspread.authorize(token.credentials())


def _strip_headings(markdown: str) -> str:
    return "\n".join(
        line[4:] if line.startswith("### ") else line
        for line in markdown.splitlines()
    )


def _category_rows(data: FinancialData, category: Category) -> list:
    """Header plus one row per item; the ID column stays out of the sheet."""
    df = items_frame(data, category).drop(columns=["ID"])
    columns = [key for key in columns_for(category) if key != "id"]
    for key in DATE_FIELDS:
        if key in columns:
            # Leading apostrophe keeps USER_ENTERED from turning ISO text into a date cell
            header = columns_for(category)[key]
            df[header] = df[header].map(lambda v: f"'{v}" if v else "")
    return [list(df.columns)] + df.values.tolist()


def build_updates(data: FinancialData, diagnosis: str, start: Optional[pd.Timestamp] = None) -> list:
    """Value ranges for one batch update covering every worksheet."""
    totals = summarize(data)
    forecast = data.income_forecast

    summary_rows = [
        [_strip_headings(diagnosis)],
        [""],
        [SUMMARY_LABELS["total_income"], totals.total_income],
        [SUMMARY_LABELS["total_expenses"], totals.total_expenses],
        [SUMMARY_LABELS["payment_capacity"], totals.payment_capacity],
        [""],
        [SUMMARY_LABELS["growth_rate"], forecast.growth_rate],
        [SUMMARY_LABELS["months_to_forecast"], forecast.months_to_forecast],
    ]

    projection = projection_frame(project_income(totals.total_income, forecast), start=start)
    projection_rows = [["Mês", "Renda Projetada"]] + [
        [f"'{label}", round(float(value), 2)]
        for label, value in zip(projection['Label'], projection['Projected Income'])
    ]

    updates = [{'range': f"{SHEET_NAMES['summary']}!A1", 'values': summary_rows}]
    for category, sheet_name in CATEGORY_SHEETS.items():
        updates.append({'range': f"{sheet_name}!A1", 'values': _category_rows(data, category)})
    updates.append({'range': f"{SHEET_NAMES['projection']}!A1", 'values': projection_rows})
    return updates


def save_analysis(client, data: FinancialData, diagnosis: str, today: Optional[date] = None) -> SavedSheet:
    """
    Creates a new spreadsheet holding the diagnosis, the line items and the
    income projection, written in a single batch update.
    """
    today = today or date.today()
    title = f"{SPREADSHEET_TITLE_PREFIX} - {today.strftime('%d/%m/%Y')}"

    spreadsheet = None
    try:
        spreadsheet = client.create(title)
        spreadsheet.sheet1.update_title(SHEET_NAMES['summary'])
        for sheet_name in list(CATEGORY_SHEETS.values()) + [SHEET_NAMES['projection']]:
            spreadsheet.add_worksheet(title=sheet_name, rows=100, cols=12)

        body = {
            'valueInputOption': 'USER_ENTERED',
            'data': build_updates(data, diagnosis, start=pd.Timestamp(today)),
        }
        spreadsheet.values_batch_update(body)
    except (GSpreadException, requests.RequestException) as e:
        console.print(f"[bold red]Failed to save analysis: {e}[/bold red]")
        if spreadsheet is not None:
            # The file exists in the user's Drive but is incomplete
            raise SheetsError(
                f"Could not save analysis: {e}. A partially written spreadsheet was left at {spreadsheet.url}"
            ) from e
        raise SheetsError(f"Could not save analysis: {e}") from e

    console.print(f"[green]Saved analysis to '{title}'[/green]")
    return SavedSheet(spreadsheet_id=spreadsheet.id, url=spreadsheet.url)


def _rows_to_items(rows: list, category: Category) -> list:
    """Maps sheet rows back to item dicts by matching header labels."""
    if not rows:
        return []
    by_label = {label: key for key, label in columns_for(category).items()}
    header = rows[0]
    items = []
    for row in rows[1:]:
        if not any(str(cell).strip() for cell in row):
            continue
        item = {}
        for i, label in enumerate(header):
            if label in by_label and i < len(row):
                item[by_label[label]] = str(row[i]).lstrip("'")
        items.append(item)
    return items


def load_analysis(client, spreadsheet_id: str) -> Tuple[FinancialData, str]:
    """
    Reads a saved analysis back. Returns the normalised snapshot and the
    diagnosis text from Resumo!A1.
    """
    try:
        spreadsheet = client.open_by_key(spreadsheet_id)

        payload = {}
        for category, sheet_name in CATEGORY_SHEETS.items():
            try:
                rows = spreadsheet.worksheet(sheet_name).get_all_values()
            except WorksheetNotFound:
                console.print(f"[yellow]Warning: worksheet '{sheet_name}' not found. Using default row.[/yellow]")
                rows = []
            payload[category.value] = _rows_to_items(rows, category)

        summary = spreadsheet.worksheet(SHEET_NAMES['summary']).get_all_values()
    except WorksheetNotFound as e:
        raise SheetsError(f"Spreadsheet {spreadsheet_id} is not a saved analysis: {e}") from e
    except (GSpreadException, requests.RequestException) as e:
        console.print(f"[red]Error reading analysis from sheet: {e}[/red]")
        raise SheetsError(f"Could not read analysis: {e}") from e

    diagnosis = summary[0][0] if summary and summary[0] else ""
    labels = {row[0]: row[1] for row in summary[1:] if len(row) >= 2}
    payload['income_forecast'] = {
        key: labels[SUMMARY_LABELS[key]]
        for key in ('growth_rate', 'months_to_forecast')
        if SUMMARY_LABELS[key] in labels
    }
    return from_dict(payload), diagnosis
