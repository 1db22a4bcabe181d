from unittest.mock import MagicMock

import pytest
import requests

from sqlsage.config.settings import Settings
from sqlsage.domain.errors import ProviderError
from sqlsage.domain.models import Message
from sqlsage.domain.ranking import cosine_similarity
from sqlsage.infra.embedding_client import EmbeddingClient, HashEmbeddingClient, build_embedder
from sqlsage.infra.llm_client import LLMClient

def _session(payload=None, error=None):
    session = MagicMock()
    response = MagicMock()
    if error is not None:
        response.raise_for_status.side_effect = error
    response.json.return_value = payload
    session.post.return_value = response
    return session

# LLMClient

def test_llm_posts_chat_completion():
    cfg = Settings(LLM_API_BASE="http://llm.local/v1/", LLM_API_KEY="secret", LLM_MODEL="m", TEMPERATURE=0.2)
    session = _session({"choices": [{"message": {"content": "SELECT 1;"}}]})
    client = LLMClient(cfg, session=session)

    assert client.submit_prompt([Message(role="user", content="hi")]) == "SELECT 1;"

    args, kwargs = session.post.call_args
    assert args[0] == "http://llm.local/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"]["model"] == "m"
    assert kwargs["json"]["temperature"] == 0.2
    assert kwargs["json"]["messages"] == [{"role": "user", "content": "hi"}]

def test_llm_http_error_becomes_provider_error():
    session = _session(error=requests.HTTPError("500 Server Error"))
    with pytest.raises(ProviderError):
        LLMClient(Settings(), session=session).submit_prompt([])

def test_llm_unexpected_payload_becomes_provider_error():
    with pytest.raises(ProviderError):
        LLMClient(Settings(), session=_session({"choices": []})).submit_prompt([])

def test_llm_without_key_sends_no_auth_header():
    session = _session({"choices": [{"message": {"content": "ok"}}]})
    LLMClient(Settings(LLM_API_KEY=None), session=session).submit_prompt([{"role": "user", "content": "x"}])
    assert "Authorization" not in session.post.call_args.kwargs["headers"]

# embeddings

def test_remote_embeddings_report_usage():
    cfg = Settings(EMBEDDING_MODEL="text-embedding-3-small", EMBEDDING_DIM=3)
    session = _session({"data": [{"embedding": [0.1, 0.2, 0.3]}], "usage": {"prompt_tokens": 4, "total_tokens": 4}})
    result = EmbeddingClient(cfg, session=session).embed("count users")

    assert result.vector == [0.1, 0.2, 0.3]
    assert result.usage.prompt_tokens == 4
    assert session.post.call_args.kwargs["json"] == {"model": "text-embedding-3-small", "input": ["count users"]}

def test_remote_embeddings_estimate_usage_when_missing():
    cfg = Settings(EMBEDDING_MODEL="e")
    session = _session({"data": [{"embedding": [1.0]}]})
    assert EmbeddingClient(cfg, session=session).embed("12345678").usage.total_tokens == 2

def test_remote_embedding_failure():
    cfg = Settings(EMBEDDING_MODEL="e")
    with pytest.raises(ProviderError):
        EmbeddingClient(cfg, session=_session(error=requests.ConnectionError("refused"))).embed("x")
    with pytest.raises(ProviderError):
        EmbeddingClient(cfg, session=_session({"data": []})).embed("x")

def test_remote_client_needs_model():
    with pytest.raises(ValueError):
        EmbeddingClient(Settings(EMBEDDING_MODEL=None))

def test_hash_embeddings_are_deterministic_and_normalised():
    client = HashEmbeddingClient(dimension=32)
    first = client.embed("How many users signed up?").vector
    assert first == client.embed("how many USERS signed up").vector
    assert len(first) == 32
    assert sum(v * v for v in first) == pytest.approx(1.0)
    assert client.embed("").vector == [0.0] * 32

def test_hash_embeddings_rank_shared_words_higher():
    client = HashEmbeddingClient(dimension=256)
    query = client.embed("count users").vector
    related = client.embed("count users SELECT COUNT(*) FROM users").vector
    unrelated = client.embed("total revenue per region").vector
    assert cosine_similarity(query, related) > cosine_similarity(query, unrelated)

def test_build_embedder_selects_backend(caplog):
    assert isinstance(build_embedder(Settings(EMBEDDING_MODEL="e")), EmbeddingClient)
    local = build_embedder(Settings(EMBEDDING_MODEL=None, EMBEDDING_DIM=16))
    assert isinstance(local, HashEmbeddingClient)
    assert local.dimension == 16
    assert "falling back to local hash embeddings" in caplog.text

def test_llm_config_update_is_used_by_next_request():
    session = _session({"choices": [{"message": {"content": "ok"}}]})
    client = LLMClient(Settings(LLM_MODEL="a", LLM_API_KEY=None), session=session)
    client.update_config(model="b", api_key="rotated")
    client.submit_prompt([])
    kwargs = session.post.call_args.kwargs
    assert kwargs["json"]["model"] == "b"
    assert kwargs["headers"]["Authorization"] == "Bearer rotated"
