# retrieval/memory_store.py
import logging
import time
import uuid
from typing import List, Optional

from sqlsage.domain.models import DDLItem, DocumentationItem, QuestionSQLPair, TrainingData, TrainingStatistics
from sqlsage.domain.ranking import rank_by_similarity
from sqlsage.retrieval.knowledge_store import (
    dump_training_data,
    filter_ddl_by_table_name,
    filter_question_sql,
    load_training_data,
    statistics_for,
)

logger = logging.getLogger(__name__)

class MemoryKnowledgeStore:
    """In-process knowledge store ranking by brute-force cosine similarity.

    Not thread-safe; callers serialise concurrent writers themselves.
    """

    def __init__(self, embedding_dim: Optional[int] = None):
        self.embedding_dim = embedding_dim
        self._question_sql: List[QuestionSQLPair] = []
        self._ddl: List[DDLItem] = []
        self._documentation: List[DocumentationItem] = []

    @staticmethod
    def _generate_id(prefix: str) -> str:
        return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"

    def _check_dim(self, embedding: List[float]) -> None:
        if self.embedding_dim is not None and len(embedding) != self.embedding_dim:
            raise ValueError(f"Expected embedding of length {self.embedding_dim}, got {len(embedding)}")

    def add_question_sql(self, question: str, sql: str, embedding: List[float]) -> str:
        self._check_dim(embedding)
        item = QuestionSQLPair(id=self._generate_id("qs"), question=question, sql=sql, embedding=list(embedding))
        self._question_sql.append(item)
        return item.id

    def add_ddl(self, ddl: str, embedding: List[float], table_name: Optional[str] = None) -> str:
        self._check_dim(embedding)
        item = DDLItem(id=self._generate_id("ddl"), ddl=ddl, table_name=table_name, embedding=list(embedding))
        self._ddl.append(item)
        return item.id

    def add_documentation(self, documentation: str, embedding: List[float], title: Optional[str] = None) -> str:
        self._check_dim(embedding)
        item = DocumentationItem(
            id=self._generate_id("doc"), documentation=documentation, title=title, embedding=list(embedding)
        )
        self._documentation.append(item)
        return item.id

    def get_similar_question_sql(self, embedding: List[float], limit: int = 5) -> List[QuestionSQLPair]:
        return rank_by_similarity(self._question_sql, embedding, lambda i: i.embedding, limit)

    def get_related_ddl(self, embedding: List[float], limit: int = 10) -> List[DDLItem]:
        return rank_by_similarity(self._ddl, embedding, lambda i: i.embedding, limit)

    def get_related_documentation(self, embedding: List[float], limit: int = 5) -> List[DocumentationItem]:
        return rank_by_similarity(self._documentation, embedding, lambda i: i.embedding, limit)

    def remove_training_data(self, id: str) -> bool:
        before = len(self._question_sql) + len(self._ddl) + len(self._documentation)
        # ids are not namespaced per collection
        self._question_sql = [i for i in self._question_sql if i.id != id]
        self._ddl = [i for i in self._ddl if i.id != id]
        self._documentation = [i for i in self._documentation if i.id != id]
        return before != len(self._question_sql) + len(self._ddl) + len(self._documentation)

    def get_training_data(self) -> TrainingData:
        return TrainingData(
            question_sql=[i.model_copy(deep=True) for i in self._question_sql],
            ddl=[i.model_copy(deep=True) for i in self._ddl],
            documentation=[i.model_copy(deep=True) for i in self._documentation],
        )

    def get_statistics(self) -> TrainingStatistics:
        return statistics_for(TrainingData(
            question_sql=self._question_sql, ddl=self._ddl, documentation=self._documentation
        ))

    def find_ddl_by_table_name(self, table_name: str) -> List[DDLItem]:
        return filter_ddl_by_table_name(self.get_training_data().ddl, table_name)

    def search_question_sql(self, query: str) -> List[QuestionSQLPair]:
        return filter_question_sql(self.get_training_data().question_sql, query)

    def clear(self) -> None:
        self._question_sql = []
        self._ddl = []
        self._documentation = []

    def export_json(self) -> str:
        return dump_training_data(self.get_training_data())

    def import_json(self, json_data: str) -> None:
        data = load_training_data(json_data)
        # a missing section leaves that collection untouched
        if data.question_sql_pairs is not None:
            self._question_sql = list(data.question_sql_pairs)
        if data.ddl_items is not None:
            self._ddl = list(data.ddl_items)
        if data.documentation_items is not None:
            self._documentation = list(data.documentation_items)
        logger.info(
            f"Imported training data: {len(self._question_sql)} question/SQL pairs, "
            f"{len(self._ddl)} DDL items, {len(self._documentation)} documentation items"
        )
