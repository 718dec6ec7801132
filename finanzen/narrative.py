"""
Prompt rendering and the diagnosis request.

The text-generation call is injected as an async ``complete(prompt)``
callable; see ``finanzen.gemini_client`` for the Gemini implementation.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from finanzen.formatting import format_currency, format_percent
from finanzen.models import DebtItem, FinancialData, LineItem
from finanzen.processor import Totals, category_totals, project_income, summarize

CompletionFn = Callable[[str], Awaitable[str]]

UNSPECIFIED = "(Não especificado)"


@dataclass(frozen=True)
class Diagnosis:
    markdown: str
    totals: Totals


def format_items(items: Iterable[LineItem]) -> str:
    lines = [
        f"- {item.description or UNSPECIFIED}: {format_currency(item.amount)}"
        for item in items
        if item.amount > 0
    ]
    return "\n".join(lines) or "- Nenhum item informado"


def format_debt_items(items: Iterable[DebtItem]) -> str:
    blocks = []
    for item in items:
        if item.loan_amount <= 0:
            continue
        blocks.append(
            f"- **{item.description or UNSPECIFIED}**\n"
            f"  - Valor do Empréstimo: {format_currency(item.loan_amount)}\n"
            f"  - Saldo Devedor: {format_currency(item.outstanding_balance)}\n"
            f"  - Valor da Parcela: {format_currency(item.amount)}\n"
            f"  - Juros (CET): {format_percent(item.monthly_interest_rate)} a.m. | "
            f"{format_percent(item.annual_interest_rate)} a.a.\n"
            f"  - Duração: De {item.start_date or 'N/A'} até {item.end_date or 'N/A'}\n"
            f"  - Total de Parcelas: {item.total_installments}"
        )
    return "\n".join(blocks) or "- Nenhuma dívida informada"


def format_forecast(data: FinancialData, totals: Totals) -> str:
    forecast = data.income_forecast
    points = project_income(totals.total_income, forecast)
    if not points:
        return "- Sem projeção de crescimento de renda"
    return (
        f"- Crescimento anual esperado: {format_percent(forecast.growth_rate)}\n"
        f"- Renda projetada em {forecast.months_to_forecast} meses: "
        f"{format_currency(points[-1].projected_income)}"
    )


def build_prompt(data: FinancialData, totals: Optional[Totals] = None) -> str:
    """Render the snapshot and its totals into the diagnosis prompt."""
    totals = totals or summarize(data)
    sums = category_totals(data)

    return f"""Analise a situação financeira com base nos seguintes dados mensais em BRL:

### Rendas
{format_items(data.income)}
- **Total de Rendas:** {format_currency(totals.total_income)}

### Gastos Essenciais
{format_items(data.expenses)}
- **Total de Gastos Essenciais:** {format_currency(sums.expenses)}

### Dívidas
{format_debt_items(data.debts)}
- **Total de Pagamentos Mensais com Dívidas:** {format_currency(sums.debts)}

### Resumo
- **Total de Despesas (gastos + parcelas):** {format_currency(totals.total_expenses)}
- **Capacidade de Pagamento:** {format_currency(totals.payment_capacity)}

### Projeção de Renda
{format_forecast(data, totals)}

Meu objetivo é equilibrar minhas contas e construir um futuro financeiro estável.
Forneça um diagnóstico claro, amigável e encorajador. Use markdown para formatar sua resposta.
Estruture sua resposta em três seções obrigatórias usando ### como título:
### Panorama Geral
### Pontos de Atenção
### Recomendações Práticas

Na seção "Recomendações Práticas", seja muito específico e forneça estratégias de economia acionáveis e personalizadas com base nos dados fornecidos. Por exemplo, sugira a revisão de categorias de despesas específicas e proponha metas percentuais de redução, se aplicável. Para as dívidas, sugira estratégias de quitação como o método "bola de neve" ou "avalanche" com base nos juros e saldos informados.
"""


async def request_diagnosis(data: FinancialData, complete: CompletionFn) -> Diagnosis:
    """
    Totals are computed before the prompt is sent. Failures from ``complete``
    (NarrativeError subclasses) propagate to the caller unchanged.
    """
    totals = summarize(data)
    markdown = await complete(build_prompt(data, totals))
    return Diagnosis(markdown=markdown, totals=totals)
