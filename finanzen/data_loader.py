import pandas as pd
from typing import Optional

from finanzen.models import Category, IncomeForecast, FinancialData
from finanzen.store import from_dict

# CSV category labels (lower-cased) -> Category
CATEGORY_ALIASES = {
    "income": Category.INCOME,
    "renda": Category.INCOME,
    "rendas": Category.INCOME,
    "expense": Category.EXPENSES,
    "expenses": Category.EXPENSES,
    "gasto": Category.EXPENSES,
    "gastos": Category.EXPENSES,
    "debt": Category.DEBTS,
    "debts": Category.DEBTS,
    "divida": Category.DEBTS,
    "dívida": Category.DEBTS,
    "dividas": Category.DEBTS,
    "dívidas": Category.DEBTS,
}

REQUIRED_COLUMNS = ["CATEGORY", "DESCRIPTION", "AMOUNT"]

DEBT_COLUMNS = [
    "LOAN_AMOUNT",
    "OUTSTANDING_BALANCE",
    "TOTAL_INSTALLMENTS",
    "MONTHLY_INTEREST_RATE",
    "ANNUAL_INTEREST_RATE",
    "START_DATE",
    "END_DATE",
]


def load_csv(file_path: str, forecast: Optional[IncomeForecast] = None) -> FinancialData:
    """
    Loads monthly line items from a CSV file.

    Expected format:
    CATEGORY, DESCRIPTION, AMOUNT [, LOAN_AMOUNT, OUTSTANDING_BALANCE,
    TOTAL_INSTALLMENTS, MONTHLY_INTEREST_RATE, ANNUAL_INTEREST_RATE,
    START_DATE, END_DATE]

    Args:
        file_path: Path to the CSV file.
        forecast: Income forecast to attach to the snapshot.

    Returns:
        FinancialData: Normalised snapshot, one default row for any empty category.
    """
    try:
        # Keep everything as text; amounts may use pt-BR notation
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        df.columns = df.columns.str.upper().str.strip()

        if not all(col in df.columns for col in REQUIRED_COLUMNS):
            raise ValueError(f"CSV missing required columns: {REQUIRED_COLUMNS}")

        df["CATEGORY"] = df["CATEGORY"].str.strip().str.lower().map(CATEGORY_ALIASES)
        unknown = df["CATEGORY"].isna()
        if unknown.any():
            raise ValueError(f"Unknown category in rows: {list(df.index[unknown] + 2)}")

        payload = {category.value: [] for category in Category}
        for position, row in enumerate(df.to_dict("records"), start=1):
            category = row["CATEGORY"]
            record = {
                "id": position,
                "description": row["DESCRIPTION"].strip(),
                "amount": row["AMOUNT"],
            }
            if category is Category.DEBTS:
                for col in DEBT_COLUMNS:
                    if col in row:
                        record[col.lower()] = row[col]
            payload[category.value].append(record)

        data = from_dict(payload)

    except Exception as e:
        raise ValueError(f"Error loading CSV: {e}")

    if forecast is not None:
        data = FinancialData(data.income, data.expenses, data.debts, forecast)
    return data
