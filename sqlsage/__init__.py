"""sqlsage: retrieval-augmented text-to-SQL."""

from sqlsage.domain.errors import (
    ConfigurationError,
    ProviderError,
    SQLSageError,
    StoreNotReadyError,
    TrainingDataImportError,
)
from sqlsage.domain.models import (
    AskResult,
    DDLItem,
    DocumentationItem,
    QuestionSQLPair,
    SQLGenerationOptions,
    SQLGenerationResponse,
    TrainingPlan,
    TrainingPlanItem,
)
from sqlsage.infra.embedding_client import EmbeddingClient, HashEmbeddingClient
from sqlsage.infra.llm_client import LLMClient
from sqlsage.infra.qdrant_client import QdrantKnowledgeStore
from sqlsage.reasoning.sql_generator import SQLGenerator
from sqlsage.retrieval.knowledge_store import KnowledgeStore
from sqlsage.retrieval.memory_store import MemoryKnowledgeStore

__all__ = [
    "AskResult",
    "ConfigurationError",
    "DDLItem",
    "DocumentationItem",
    "EmbeddingClient",
    "HashEmbeddingClient",
    "KnowledgeStore",
    "LLMClient",
    "MemoryKnowledgeStore",
    "ProviderError",
    "QdrantKnowledgeStore",
    "QuestionSQLPair",
    "SQLGenerationOptions",
    "SQLGenerationResponse",
    "SQLGenerator",
    "SQLSageError",
    "StoreNotReadyError",
    "TrainingDataImportError",
    "TrainingPlan",
    "TrainingPlanItem",
]
