import itertools
from gspread.exceptions import SpreadsheetNotFound, WorksheetNotFound
from gspread.utils import a1_to_rowcol
from rich.console import Console

console = Console()

_ids = itertools.count(1)


def _display(value):
    # Sheets shows USER_ENTERED text without its leading apostrophe
    text = "" if value is None else str(value)
    return text[1:] if text.startswith("'") else text


class MockWorksheet:
    def __init__(self, title, data=None):
        self.title = title
        self.data = data or [] # List of lists (rows)

    def update_title(self, title):
        self.title = title

    def write(self, start_cell, values):
        row_idx, col_idx = a1_to_rowcol(start_cell)
        for r, row in enumerate(values):
            target = row_idx - 1 + r
            while len(self.data) <= target:
                self.data.append([])
            line = self.data[target]
            for c, value in enumerate(row):
                pos = col_idx - 1 + c
                while len(line) <= pos:
                    line.append("")
                line[pos] = value

    def get_all_values(self):
        return [[_display(v) for v in row] for row in self.data]

class MockSpreadsheet:
    def __init__(self, title):
        self.id = f"mock-spreadsheet-{next(_ids)}"
        self.title = title
        self.url = f"https://docs.google.com/spreadsheets/d/{self.id}"
        self.worksheets = [MockWorksheet("Sheet1")]

    @property
    def sheet1(self):
        return self.worksheets[0]

    def add_worksheet(self, title, rows=100, cols=26):
        sheet = MockWorksheet(title)
        self.worksheets.append(sheet)
        return sheet

    def worksheet(self, name):
        for sheet in self.worksheets:
            if sheet.title == name:
                return sheet
        raise WorksheetNotFound(name)

    def values_batch_update(self, body):
        for update in body.get('data', []):
            sheet_name, start_cell = update['range'].rsplit('!', 1)
            self.worksheet(sheet_name.strip("'")).write(start_cell, update['values'])
        console.print(f"[bold cyan][Mock][/bold cyan] Batch Update executed with {len(body.get('data', []))} updates.")
        return {"spreadsheetId": self.id, "totalUpdatedSheets": len(body.get('data', []))}

class MockClient:
    def __init__(self):
        self.spreadsheets = {}

    def create(self, title):
        spreadsheet = MockSpreadsheet(title)
        self.spreadsheets[spreadsheet.id] = spreadsheet
        return spreadsheet

    def open_by_key(self, key):
        if key not in self.spreadsheets:
            raise SpreadsheetNotFound(key)
        return self.spreadsheets[key]

_client = MockClient()

def get_client(token):
    """Every token shares one in-memory Drive so saved analyses can be read back."""
    return _client
