import httpx
from google import genai
from google.genai import errors, types
from rich.console import Console

from finanzen.config import GEMINI_API_KEY, GEMINI_MODEL, SYSTEM_INSTRUCTION, TEMPERATURE
from finanzen.exceptions import BlockedResponseError, EmptyResponseError, NarrativeTransportError

console = Console()

BLOCKING_FINISH_REASONS = {
    types.FinishReason.SAFETY,
    types.FinishReason.PROHIBITED_CONTENT,
    types.FinishReason.BLOCKLIST,
    types.FinishReason.SPII,
}


class GeminiClient:
    """Async text completion through the Gemini API"""

    def __init__(self, api_key: str | None = None, model: str | None = None,
                 temperature: float | None = None, client: genai.Client | None = None):
        self.model = model or GEMINI_MODEL
        self.temperature = TEMPERATURE if temperature is None else temperature
        self.client = client or genai.Client(api_key=api_key or GEMINI_API_KEY)

    async def complete(self, prompt: str) -> str:
        """
        Sends the prompt and returns the markdown answer.

        Raises:
            BlockedResponseError: Prompt or answer stopped by safety filters
            EmptyResponseError: Answer carried no text
            NarrativeTransportError: API error status or network failure
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION,
                    temperature=self.temperature,
                ),
            )
        except errors.APIError as e:
            console.print(f"[red]Error calling Gemini API: {e}[/red]")
            raise NarrativeTransportError(f"Gemini API error: {e.code} {e.message}") from e
        except httpx.HTTPError as e:
            console.print(f"[red]Error reaching Gemini API: {e}[/red]")
            raise NarrativeTransportError(f"Gemini API unreachable: {e}") from e

        feedback = response.prompt_feedback
        if feedback is not None and feedback.block_reason:
            raise BlockedResponseError(f"Prompt blocked: {feedback.block_reason}")

        candidates = response.candidates or []
        if candidates and candidates[0].finish_reason in BLOCKING_FINISH_REASONS:
            raise BlockedResponseError(f"Response blocked: {candidates[0].finish_reason}")

        text = response.text
        if not text or not text.strip():
            raise EmptyResponseError("Gemini returned an empty response")
        return text


MOCK_DIAGNOSIS = """### Panorama Geral
Sua renda cobre os gastos essenciais e as parcelas das dívidas, mas a margem é estreita.

### Pontos de Atenção
- As parcelas das dívidas consomem uma parte relevante da renda.
- Não há reserva de emergência informada.

### Recomendações Práticas
- Revise os gastos essenciais e busque uma redução de 10%.
- Priorize quitar a dívida com maior CET (método avalanche).
"""


class MockGeminiClient:
    """Placeholder completion used in mock mode; never calls the network"""

    def __init__(self, response: str = MOCK_DIAGNOSIS):
        self.response = response
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        console.print(f"[bold cyan][Mock][/bold cyan] Gemini completion requested ({len(prompt)} chars).")
        return self.response
