"""
Shared pytest fixtures: a scripted LLM, local hash embeddings and an in-memory store.
"""

import pytest

from sqlsage.infra.embedding_client import HashEmbeddingClient
from sqlsage.reasoning.sql_generator import SQLGenerator
from sqlsage.retrieval.memory_store import MemoryKnowledgeStore

USERS_DDL = "CREATE TABLE users (id SERIAL PRIMARY KEY, name VARCHAR(50));"

class FakeLLM:
    """Returns queued responses in order and records every prompt it was sent."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def submit_prompt(self, messages):
        self.prompts.append(list(messages))
        if not self.responses:
            raise AssertionError("FakeLLM ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

@pytest.fixture
def embedder():
    return HashEmbeddingClient(dimension=64)

@pytest.fixture
def store():
    return MemoryKnowledgeStore()

@pytest.fixture
def llm():
    return FakeLLM()

@pytest.fixture
def generator(llm, embedder, store):
    return SQLGenerator(llm=llm, embedder=embedder, store=store)
