"""
Tests for the Gemini-backed company analysis client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from crowdscore.domain.models import CompanyReputation, DelayStats
from crowdscore.infrastructure.llm import AnalysisService, AnalysisServiceError
from crowdscore.infrastructure.llm.analysis_service import (
    GENERIC_ERROR_MESSAGE,
    INVALID_KEY_MESSAGE,
    MISSING_KEY_MESSAGE,
)


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def reputation():
    stats = DelayStats(count=3, average_rating=3.5, average_delay_days=48.6)
    return CompanyReputation(name="Relógios Geniais", stats=stats)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestBuildPrompt:
    """Test prompt content."""

    def test_prompt_mentions_company_metrics(self, reputation):
        prompt = AnalysisService(session=MagicMock()).build_prompt(reputation)
        assert '"Relógios Geniais"' in prompt
        assert "projetos rastreados: 3" in prompt
        assert "atraso na entrega: 49" in prompt
        assert "3.5 de 5 estrelas" in prompt


class TestAnalyze:
    """Test request and response handling."""

    def test_returns_candidate_text(self, reputation, session):
        session.post.return_value = _response(payload={
            "candidates": [{"content": {"parts": [{"text": "Com um atraso "}, {"text": "médio..."}]}}]
        })
        text = AnalysisService(session=session).analyze(reputation, "chave")

        assert text == "Com um atraso médio..."
        args, kwargs = session.post.call_args
        assert args[0].endswith(":generateContent")
        assert kwargs["params"] == {"key": "chave"}
        assert kwargs["json"]["contents"][0]["parts"][0]["text"]

    def test_missing_key(self, reputation, session):
        with pytest.raises(AnalysisServiceError, match=MISSING_KEY_MESSAGE):
            AnalysisService(session=session).analyze(reputation, "")
        session.post.assert_not_called()

    def test_invalid_key(self, reputation, session):
        session.post.return_value = _response(400, text='{"error": {"message": "API key not valid."}}')
        with pytest.raises(AnalysisServiceError) as exc:
            AnalysisService(session=session).analyze(reputation, "errada")
        assert str(exc.value) == INVALID_KEY_MESSAGE

    def test_server_error(self, reputation, session):
        session.post.return_value = _response(500, text="internal")
        with pytest.raises(AnalysisServiceError) as exc:
            AnalysisService(session=session).analyze(reputation, "chave")
        assert str(exc.value) == GENERIC_ERROR_MESSAGE

    def test_timeout(self, reputation, session):
        session.post.side_effect = requests.Timeout()
        with pytest.raises(AnalysisServiceError) as exc:
            AnalysisService(session=session).analyze(reputation, "chave")
        assert str(exc.value) == GENERIC_ERROR_MESSAGE

    def test_connection_error(self, reputation, session):
        session.post.side_effect = requests.ConnectionError("offline")
        with pytest.raises(AnalysisServiceError):
            AnalysisService(session=session).analyze(reputation, "chave")

    def test_empty_candidates(self, reputation, session):
        session.post.return_value = _response(payload={"candidates": []})
        with pytest.raises(AnalysisServiceError):
            AnalysisService(session=session).analyze(reputation, "chave")

    def test_non_json_body(self, reputation, session):
        response = _response()
        response.json.side_effect = ValueError("not json")
        session.post.return_value = response
        with pytest.raises(AnalysisServiceError):
            AnalysisService(session=session).analyze(reputation, "chave")
