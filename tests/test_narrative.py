import asyncio
import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from google.genai import errors, types

from finanzen.exceptions import BlockedResponseError, EmptyResponseError, NarrativeTransportError
from finanzen.gemini_client import GeminiClient, MockGeminiClient, MOCK_DIAGNOSIS
from finanzen.models import DebtItem, FinancialData, IncomeForecast, LineItem
from finanzen.narrative import build_prompt, request_diagnosis

@pytest.fixture
def data():
    return FinancialData(
        income=(LineItem(1, "Salário Líquido", 5000.0), LineItem(2, "Bico", 0.0)),
        expenses=(LineItem(1, "Aluguel", 1500.0), LineItem(2, "", 200.0)),
        debts=(
            DebtItem(1, "Financiamento do Carro", 300.0, loan_amount=20000.0, outstanding_balance=15000.0,
                     total_installments=48, monthly_interest_rate=1.5, annual_interest_rate=19.56,
                     start_date="2024-03-10"),
            DebtItem(2, "Sem contrato", 0.0),
        ),
        income_forecast=IncomeForecast(growth_rate=12, months_to_forecast=12),
    )

def test_build_prompt_contains_totals(data):
    prompt = build_prompt(data)

    assert "- **Total de Rendas:** R$ 5.000,00" in prompt
    assert "- **Total de Gastos Essenciais:** R$ 1.700,00" in prompt
    assert "- **Total de Pagamentos Mensais com Dívidas:** R$ 300,00" in prompt
    assert "**Capacidade de Pagamento:** R$ 3.000,00" in prompt
    assert "### Recomendações Práticas" in prompt

def test_build_prompt_filters_zero_items(data):
    prompt = build_prompt(data)

    assert "Bico" not in prompt
    assert "Sem contrato" not in prompt
    # Blank descriptions get a placeholder
    assert "- (Não especificado): R$ 200,00" in prompt

def test_build_prompt_debt_details(data):
    prompt = build_prompt(data)

    assert "- **Financiamento do Carro**" in prompt
    assert "Saldo Devedor: R$ 15.000,00" in prompt
    assert "Juros (CET): 1.5% a.m. | 19.56% a.a." in prompt
    assert "Duração: De 2024-03-10 até N/A" in prompt

def test_build_prompt_projection(data):
    prompt = build_prompt(data)
    assert "Renda projetada em 12 meses: R$ 5.600,00" in prompt

    flat = FinancialData(data.income, data.expenses, data.debts, IncomeForecast(0, 12))
    assert "Sem projeção" in build_prompt(flat)

def test_request_diagnosis_passes_prompt(data):
    client = MockGeminiClient()
    diagnosis = asyncio.run(request_diagnosis(data, client.complete))

    assert diagnosis.markdown == MOCK_DIAGNOSIS
    assert diagnosis.totals.payment_capacity == 3000
    assert client.prompts == [build_prompt(data)]

def test_request_diagnosis_propagates_failure(data):
    async def failing(prompt):
        raise EmptyResponseError("nothing")

    with pytest.raises(EmptyResponseError):
        asyncio.run(request_diagnosis(data, failing))

def _gemini_with(response=None, side_effect=None):
    genai_client = MagicMock()
    genai_client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return GeminiClient(client=genai_client, model="test-model", temperature=0.2), genai_client

def _response(text="### Panorama Geral\nTudo certo.", block_reason=None, finish_reason=types.FinishReason.STOP):
    return SimpleNamespace(
        text=text,
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
        candidates=[SimpleNamespace(finish_reason=finish_reason)],
    )

def test_gemini_complete_returns_text():
    client, genai_client = _gemini_with(_response())
    assert asyncio.run(client.complete("prompt")).startswith("### Panorama Geral")

    kwargs = genai_client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["contents"] == "prompt"
    assert kwargs["config"].temperature == 0.2
    assert "FinanZen" in kwargs["config"].system_instruction

def test_gemini_blocked_prompt():
    client, _ = _gemini_with(_response(text=None, block_reason=types.BlockedReason.SAFETY))
    with pytest.raises(BlockedResponseError):
        asyncio.run(client.complete("prompt"))

def test_gemini_blocked_answer():
    client, _ = _gemini_with(_response(finish_reason=types.FinishReason.SAFETY))
    with pytest.raises(BlockedResponseError) as exc:
        asyncio.run(client.complete("prompt"))
    assert exc.value.kind == "blocked"

@pytest.mark.parametrize("text", [None, "", "   "])
def test_gemini_empty_answer(text):
    client, _ = _gemini_with(_response(text=text))
    with pytest.raises(EmptyResponseError):
        asyncio.run(client.complete("prompt"))

def test_gemini_api_error():
    error = errors.APIError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    client, _ = _gemini_with(side_effect=error)
    with pytest.raises(NarrativeTransportError) as exc:
        asyncio.run(client.complete("prompt"))
    assert exc.value.__cause__ is error

def test_gemini_network_error():
    client, _ = _gemini_with(side_effect=httpx.ConnectError("connection refused"))
    with pytest.raises(NarrativeTransportError):
        asyncio.run(client.complete("prompt"))
