import math
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from finanzen.formatting import format_month_label
from finanzen.models import Category, FinancialData, IncomeForecast


@dataclass(frozen=True)
class Totals:
    total_income: float
    total_expenses: float
    payment_capacity: float


@dataclass(frozen=True)
class CategoryTotals:
    income: float
    expenses: float
    debts: float


@dataclass(frozen=True)
class ProjectionPoint:
    month_index: int
    projected_income: float


def category_totals(data: FinancialData) -> CategoryTotals:
    """
    Sums each category. Debts contribute their installments,
    never the outstanding balance or the original loan.
    """
    # fsum is exactly rounded, so the result does not depend on item order
    return CategoryTotals(
        income=math.fsum(item.amount for item in data.income),
        expenses=math.fsum(item.amount for item in data.expenses),
        debts=math.fsum(item.amount for item in data.debts),
    )


def summarize(data: FinancialData) -> Totals:
    """
    Computes total income, total expenses (essential expenses plus debt
    installments) and the payment capacity left after both.
    """
    sums = category_totals(data)
    total_expenses = sums.expenses + sums.debts
    return Totals(
        total_income=sums.income,
        total_expenses=total_expenses,
        payment_capacity=sums.income - total_expenses,
    )


def monthly_rate(growth_rate: float) -> float:
    """
    Effective monthly rate equivalent to an annual growth rate in percent.
    Positive for any positive growth rate, however small.
    """
    # log1p/expm1 keep tiny rates from rounding away to 0
    rate = math.expm1(math.log1p(growth_rate / 100) / 12)
    if growth_rate > 0 and rate <= 0:
        return math.ulp(0.0)
    return rate


def project_income(total_income: float, forecast: IncomeForecast) -> List[ProjectionPoint]:
    """
    Projects monthly income for months 0..months_to_forecast under monthly
    compounding. Returns an empty list unless income, growth rate and
    horizon are all positive.

    The series is strictly increasing. It stops early at the last month whose
    income is still a finite float.
    """
    if forecast.months_to_forecast <= 0 or total_income <= 0 or forecast.growth_rate <= 0:
        return []

    log_step = math.log1p(monthly_rate(forecast.growth_rate))
    points = [ProjectionPoint(0, total_income)]
    for i in range(1, forecast.months_to_forecast + 1):
        try:
            value = total_income * math.exp(i * log_step)
        except OverflowError:
            break
        # Growth below float resolution still moves to the next representable value
        value = max(value, math.nextafter(points[-1].projected_income, math.inf))
        if math.isinf(value):
            break
        points.append(ProjectionPoint(i, value))
    return points


def projection_frame(points: List[ProjectionPoint], start: Optional[pd.Timestamp] = None) -> pd.DataFrame:
    """
    Labels each projection point with its calendar month (start + i months).
    Values stay unrounded; rounding is left to whoever renders them.
    """
    if not points:
        return pd.DataFrame(columns=['Month Index', 'Month', 'Label', 'Projected Income'])

    start = pd.Timestamp.today().normalize() if start is None else pd.Timestamp(start)
    months = [start + pd.DateOffset(months=p.month_index) for p in points]

    return pd.DataFrame({
        'Month Index': [p.month_index for p in points],
        'Month': months,
        'Label': [format_month_label(m) for m in months],
        'Projected Income': [p.projected_income for p in points],
    })


# Column headers for tabular display and spreadsheet export (in order)
ITEM_COLUMNS = {
    'id': 'ID',
    'description': 'Descrição',
    'amount': 'Valor (R$)',
}

DEBT_COLUMNS = {
    'id': 'ID',
    'description': 'Descrição',
    'loan_amount': 'Valor do Empréstimo',
    'outstanding_balance': 'Saldo Devedor',
    'amount': 'Valor da Parcela',
    'monthly_interest_rate': 'CET a.m. (%)',
    'annual_interest_rate': 'CET a.a. (%)',
    'total_installments': 'Total de Parcelas',
    'start_date': 'Data de Início',
    'end_date': 'Data Final',
}


def columns_for(category: Category) -> dict:
    return DEBT_COLUMNS if Category(category) is Category.DEBTS else ITEM_COLUMNS


def items_frame(data: FinancialData, category: Category) -> pd.DataFrame:
    """
    One category as a DataFrame with display headers, in entry order.
    """
    columns = columns_for(category)
    records = [{key: getattr(item, key) for key in columns} for item in data.items(Category(category))]
    df = pd.DataFrame(records, columns=list(columns))
    return df.rename(columns=columns)
