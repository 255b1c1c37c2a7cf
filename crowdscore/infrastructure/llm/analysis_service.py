"""
Analysis Service - AI Reputation Summary
=========================================

Turns a company's delay statistics into a one-paragraph summary for
backers, using the Gemini ``generateContent`` REST endpoint.

Failures are raised as AnalysisServiceError carrying a localized message
meant for display; the caller caches it as an error result.
"""

import logging
from typing import Optional

import requests

from ...domain.models import CompanyReputation
from ..config import get_settings

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = (
    "Erro: A chave de API fornecida não é válida. "
    "Verifique a chave no painel de administração."
)
GENERIC_ERROR_MESSAGE = (
    "Erro: Não foi possível gerar a análise da IA. "
    "Verifique sua chave de API e conexão com a internet."
)
MISSING_KEY_MESSAGE = "Erro: Nenhuma chave de API configurada no painel do administrador."


class AnalysisServiceError(Exception):
    """Analysis could not be produced. ``str(e)`` is user facing."""
    pass


class AnalysisService:
    """
    Company reputation summary via Gemini.

    USAGE:
        service = AnalysisService()
        text = service.analyze(reputation, api_key="...")
    """

    PROMPT_TEMPLATE = (
        'Analise a reputação de entrega da empresa de financiamento coletivo "{name}".\n\n'
        "Aqui estão os dados:\n"
        "- Número total de projetos rastreados: {count}\n"
        "- Média de dias de atraso na entrega: {delay}\n"
        "- Avaliação média dos usuários: {rating:.1f} de 5 estrelas.\n\n"
        "Com base nesses dados, forneça um resumo curto, de um parágrafo, sobre o "
        "desempenho da empresa para um potencial apoiador.\n"
        "Incorpore a avaliação média na sua análise.\n"
        "Use um tom neutro e informativo. Comece o resumo diretamente, sem preâmbulos.\n"
        'Por exemplo: "Com um atraso médio de X dias e uma avaliação de Y estrelas em Z '
        'projetos, a [Nome da Empresa] mostra um padrão de..."\n'
        "Se o atraso for 0 ou negativo, elogie a pontualidade.\n"
        "Responda em português do Brasil."
    )

    def __init__(self, session: Optional[requests.Session] = None):
        settings = get_settings()
        self._api_url = settings.llm.api_url
        self._model = settings.llm.model
        self._temperature = settings.llm.temperature
        self._timeout = settings.llm.timeout_seconds
        self._session = session or requests.Session()

    def build_prompt(self, reputation: CompanyReputation) -> str:
        return self.PROMPT_TEMPLATE.format(
            name=reputation.name,
            count=reputation.project_count,
            delay=round(reputation.average_delay_days),
            rating=reputation.average_rating,
        )

    def analyze(self, reputation: CompanyReputation, api_key: str) -> str:
        """
        Summarize a company's delivery record.

        Args:
            reputation: Aggregated company metrics.
            api_key: Gemini credential.

        Returns:
            Summary text.

        Raises:
            AnalysisServiceError: missing/invalid key, network or API failure.
        """
        if not api_key:
            raise AnalysisServiceError(MISSING_KEY_MESSAGE)

        url = f"{self._api_url}/{self._model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": self.build_prompt(reputation)}]}],
            "generationConfig": {"temperature": self._temperature},
        }

        try:
            response = self._session.post(
                url,
                params={"key": api_key},
                json=payload,
                timeout=self._timeout
            )
        except requests.Timeout as e:
            logger.warning(f"Analysis API timeout for {reputation.name}")
            raise AnalysisServiceError(GENERIC_ERROR_MESSAGE) from e
        except requests.RequestException as e:
            logger.warning(f"Analysis API error for {reputation.name}: {e}")
            raise AnalysisServiceError(GENERIC_ERROR_MESSAGE) from e

        if response.status_code >= 400:
            body = response.text or ""
            logger.warning(f"Analysis API returned {response.status_code} for {reputation.name}")
            if "API key not valid" in body or "API_KEY_INVALID" in body:
                raise AnalysisServiceError(INVALID_KEY_MESSAGE)
            raise AnalysisServiceError(GENERIC_ERROR_MESSAGE)

        try:
            text = self._extract_response_content(response.json())
        except ValueError as e:
            raise AnalysisServiceError(GENERIC_ERROR_MESSAGE) from e

        if not text:
            logger.warning(f"Empty analysis for {reputation.name}")
            raise AnalysisServiceError(GENERIC_ERROR_MESSAGE)

        logger.info(f"Analysis generated for {reputation.name}")
        return text

    def _extract_response_content(self, data: dict) -> str:
        """Join the text parts of the first candidate."""
        try:
            candidates = data.get("candidates", [])
            if candidates:
                parts = candidates[0].get("content", {}).get("parts", [])
                return "".join(part.get("text", "") for part in parts).strip()
        except (AttributeError, IndexError, TypeError):
            pass
        return ""
