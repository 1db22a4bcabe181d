# infra/qdrant_client.py
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from qdrant_client import QdrantClient
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from sqlsage.config.settings import Settings, settings as default_settings
from sqlsage.domain.errors import StoreNotReadyError
from sqlsage.domain.models import DDLItem, DocumentationItem, QuestionSQLPair, TrainingData, TrainingStatistics
from sqlsage.retrieval.knowledge_store import (
    dump_training_data,
    filter_ddl_by_table_name,
    filter_question_sql,
    load_training_data,
)

logger = logging.getLogger(__name__)

# public item ids are arbitrary strings; Qdrant point ids must be UUIDs
POINT_NAMESPACE = uuid.UUID("5b0c6f0e-3d2a-4a57-9d43-0d9f2b1f6a11")

QUESTION_SQL = "question_sql"
DDL = "ddl"
DOCUMENTATION = "documentation"
KINDS = (QUESTION_SQL, DDL, DOCUMENTATION)

class QdrantKnowledgeStore:
    """Durable knowledge store: one Qdrant collection per kind of training data.

    ``connect()`` opens the client and ``initialize()`` creates missing
    collections; anything else raises StoreNotReadyError until both have run.
    """

    SCROLL_PAGE = 256

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        collection_prefix: str = "sqlsage",
        embedding_dim: int = 384,
        similarity_threshold: float = 0.7,
        timeout: int = 60,
    ):
        self.url = url
        self.api_key = api_key
        self.collection_prefix = collection_prefix
        self.embedding_dim = embedding_dim
        self.similarity_threshold = similarity_threshold
        self.timeout = timeout
        self.client: Optional[QdrantClient] = None
        self.initialized = False
        self._last_seq = 0

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "QdrantKnowledgeStore":
        cfg = cfg or default_settings
        return cls(
            url=cfg.QDRANT_URL,
            api_key=cfg.QDRANT_API_KEY,
            collection_prefix=cfg.QDRANT_COLLECTION_PREFIX,
            embedding_dim=cfg.EMBEDDING_DIM,
            similarity_threshold=cfg.SIMILARITY_THRESHOLD,
        )

    # lifecycle

    def connect(self) -> None:
        if self.client is not None:
            return
        self.client = QdrantClient(location=self.url, api_key=self.api_key, timeout=self.timeout)
        logger.info(f"Connected to Qdrant at {self.url}")

    def initialize(self) -> None:
        self.connect()
        for kind in KINDS:
            self._ensure_collection(self.collection_name(kind))
        self.initialized = True
        logger.info(f"Qdrant knowledge store initialized (prefix={self.collection_prefix})")

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None
        self.initialized = False

    def collection_name(self, kind: str) -> str:
        return f"{self.collection_prefix}_{kind}"

    def _ensure_collection(self, name: str) -> None:
        if not self.client.collection_exists(name):
            self.client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=self.embedding_dim, distance=Distance.COSINE),
            )

    def _ready_client(self) -> QdrantClient:
        if self.client is None:
            raise StoreNotReadyError("Qdrant knowledge store is not connected; call connect() and initialize() first")
        if not self.initialized:
            raise StoreNotReadyError("Qdrant knowledge store is not initialized; call initialize() first")
        return self.client

    # writes

    @staticmethod
    def _point_id(item_id: str) -> str:
        return str(uuid.uuid5(POINT_NAMESPACE, item_id))

    def _next_seq(self) -> int:
        self._last_seq = max(time.time_ns(), self._last_seq + 1)
        return self._last_seq

    def _upsert(self, kind: str, item_id: str, embedding: List[float], payload: Dict[str, Any]) -> None:
        client = self._ready_client()
        if not embedding:
            raise ValueError("Embedding is required for storage")
        # raw vector kept in the payload: Qdrant normalises stored cosine vectors
        payload = {**payload, "item_id": item_id, "embedding": list(embedding), "seq": self._next_seq()}
        client.upsert(
            collection_name=self.collection_name(kind),
            points=[PointStruct(id=self._point_id(item_id), vector=list(embedding), payload=payload)],
            wait=True,
        )

    def add_question_sql(self, question: str, sql: str, embedding: List[float]) -> str:
        item_id = str(uuid.uuid4())
        self._upsert(QUESTION_SQL, item_id, embedding, {"question": question, "sql": sql})
        return item_id

    def add_ddl(self, ddl: str, embedding: List[float], table_name: Optional[str] = None) -> str:
        item_id = str(uuid.uuid4())
        self._upsert(DDL, item_id, embedding, {"ddl": ddl, "table_name": table_name})
        return item_id

    def add_documentation(self, documentation: str, embedding: List[float], title: Optional[str] = None) -> str:
        item_id = str(uuid.uuid4())
        self._upsert(DOCUMENTATION, item_id, embedding, {"documentation": documentation, "title": title})
        return item_id

    # reads

    @staticmethod
    def _to_item(kind: str, payload: Dict[str, Any]):
        common = {"id": payload["item_id"], "embedding": payload.get("embedding")}
        if kind == QUESTION_SQL:
            return QuestionSQLPair(question=payload["question"], sql=payload["sql"], **common)
        if kind == DDL:
            return DDLItem(ddl=payload["ddl"], table_name=payload.get("table_name"), **common)
        return DocumentationItem(documentation=payload["documentation"], title=payload.get("title"), **common)

    def _search(self, kind: str, embedding: List[float], limit: int) -> list:
        client = self._ready_client()
        hits = client.query_points(
            collection_name=self.collection_name(kind),
            query=list(embedding),
            limit=limit,
            score_threshold=self.similarity_threshold,
            with_payload=True,
        ).points
        return [self._to_item(kind, h.payload) for h in hits]

    def get_similar_question_sql(self, embedding: List[float], limit: int = 5) -> List[QuestionSQLPair]:
        return self._search(QUESTION_SQL, embedding, limit)

    def get_related_ddl(self, embedding: List[float], limit: int = 10) -> List[DDLItem]:
        return self._search(DDL, embedding, limit)

    def get_related_documentation(self, embedding: List[float], limit: int = 5) -> List[DocumentationItem]:
        return self._search(DOCUMENTATION, embedding, limit)

    def _scroll_all(self, kind: str) -> list:
        client = self._ready_client()
        payloads, offset = [], None
        while True:
            records, offset = client.scroll(
                collection_name=self.collection_name(kind),
                limit=self.SCROLL_PAGE,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            payloads.extend(r.payload for r in records)
            if offset is None:
                break
        payloads.sort(key=lambda p: p.get("seq", 0))
        return [self._to_item(kind, p) for p in payloads]

    def get_training_data(self) -> TrainingData:
        return TrainingData(
            question_sql=self._scroll_all(QUESTION_SQL),
            ddl=self._scroll_all(DDL),
            documentation=self._scroll_all(DOCUMENTATION),
        )

    def get_statistics(self) -> TrainingStatistics:
        client = self._ready_client()
        counts = {kind: client.count(collection_name=self.collection_name(kind), exact=True).count for kind in KINDS}
        return TrainingStatistics(
            question_sql_count=counts[QUESTION_SQL],
            ddl_count=counts[DDL],
            documentation_count=counts[DOCUMENTATION],
            total_items=sum(counts.values()),
        )

    def find_ddl_by_table_name(self, table_name: str) -> List[DDLItem]:
        return filter_ddl_by_table_name(self._scroll_all(DDL), table_name)

    def search_question_sql(self, query: str) -> List[QuestionSQLPair]:
        return filter_question_sql(self._scroll_all(QUESTION_SQL), query)

    # removal / bulk

    def remove_training_data(self, id: str) -> bool:
        client = self._ready_client()
        point_id = self._point_id(id)
        removed = False
        for kind in KINDS:
            name = self.collection_name(kind)
            if client.retrieve(collection_name=name, ids=[point_id]):
                client.delete(collection_name=name, points_selector=PointIdsList(points=[point_id]), wait=True)
                removed = True
        return removed

    def _reset_collection(self, kind: str) -> None:
        client = self._ready_client()
        name = self.collection_name(kind)
        client.delete_collection(collection_name=name)
        self._ensure_collection(name)

    def clear(self) -> None:
        for kind in KINDS:
            self._reset_collection(kind)

    def export_json(self) -> str:
        return dump_training_data(self.get_training_data())

    def _replace(self, kind: str, items: list, fields: tuple) -> None:
        self._reset_collection(kind)
        for item in items:
            if not item.embedding:
                logger.warning(f"Skipping imported {kind} item {item.id} without an embedding")
                continue
            item_id = item.id or str(uuid.uuid4())
            self._upsert(kind, item_id, item.embedding, {f: getattr(item, f) for f in fields})

    def import_json(self, json_data: str) -> None:
        data = load_training_data(json_data)
        self._ready_client()
        if data.question_sql_pairs is not None:
            self._replace(QUESTION_SQL, data.question_sql_pairs, ("question", "sql"))
        if data.ddl_items is not None:
            self._replace(DDL, data.ddl_items, ("ddl", "table_name"))
        if data.documentation_items is not None:
            self._replace(DOCUMENTATION, data.documentation_items, ("documentation", "title"))
