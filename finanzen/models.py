"""Domain models - frozen dataclasses for the user's monthly finances"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Dict, Tuple, Type, Union


class Category(str, Enum):
    """Line-item collections of a FinancialData snapshot"""

    INCOME = "income"
    EXPENSES = "expenses"
    DEBTS = "debts"


@dataclass(frozen=True)
class LineItem:
    """One income source or one essential expense"""

    id: int
    description: str = ""
    amount: float = 0.0


@dataclass(frozen=True)
class DebtItem(LineItem):
    """Active debt; ``amount`` is the monthly installment"""

    loan_amount: float = 0.0
    outstanding_balance: float = 0.0
    total_installments: int = 0
    monthly_interest_rate: float = 0.0  # % a.m., not reconciled with the annual rate
    annual_interest_rate: float = 0.0  # % a.a.
    start_date: str = ""  # YYYY-MM-DD or empty
    end_date: str = ""


Item = Union[LineItem, DebtItem]

ITEM_TYPES: Dict[Category, Type[LineItem]] = {
    Category.INCOME: LineItem,
    Category.EXPENSES: LineItem,
    Category.DEBTS: DebtItem,
}


@dataclass(frozen=True)
class IncomeForecast:
    growth_rate: float = 0.0  # annual %
    months_to_forecast: int = 12


@dataclass(frozen=True)
class FinancialData:
    """Aggregate root passed to the aggregator, the projector and the narrative prompt"""

    income: Tuple[LineItem, ...]
    expenses: Tuple[LineItem, ...]
    debts: Tuple[DebtItem, ...]
    income_forecast: IncomeForecast = field(default_factory=IncomeForecast)

    def items(self, category: Category) -> Tuple[Item, ...]:
        if category is Category.INCOME:
            return self.income
        if category is Category.EXPENSES:
            return self.expenses
        if category is Category.DEBTS:
            return self.debts
        raise ValueError(f"Unknown category: {category!r}")

    def with_items(self, category: Category, items) -> "FinancialData":
        items = tuple(items)
        if category is Category.INCOME:
            return FinancialData(items, self.expenses, self.debts, self.income_forecast)
        if category is Category.EXPENSES:
            return FinancialData(self.income, items, self.debts, self.income_forecast)
        if category is Category.DEBTS:
            return FinancialData(self.income, self.expenses, items, self.income_forecast)
        raise ValueError(f"Unknown category: {category!r}")

    def to_dict(self) -> dict:
        return {
            "income": [asdict(item) for item in self.income],
            "expenses": [asdict(item) for item in self.expenses],
            "debts": [asdict(item) for item in self.debts],
            "income_forecast": asdict(self.income_forecast),
        }


def editable_fields(item_type: Type[LineItem]) -> Tuple[str, ...]:
    return tuple(f.name for f in fields(item_type) if f.name != "id")


DEFAULT_DESCRIPTIONS = {
    Category.INCOME: "Salário Líquido",
    Category.EXPENSES: "Aluguel",
    Category.DEBTS: "Cartão de Crédito",
}


def default_item(category: Category, item_id: int = 1) -> Item:
    return ITEM_TYPES[category](id=item_id, description=DEFAULT_DESCRIPTIONS[category])


def default_financial_data(months_to_forecast: int = 12) -> FinancialData:
    """Starting form: one zeroed row per category."""
    return FinancialData(
        income=(default_item(Category.INCOME),),
        expenses=(default_item(Category.EXPENSES),),
        debts=(default_item(Category.DEBTS),),
        income_forecast=IncomeForecast(growth_rate=0.0, months_to_forecast=months_to_forecast),
    )
