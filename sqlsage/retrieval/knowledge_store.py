# retrieval/knowledge_store.py
from datetime import datetime, timezone
from typing import List, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from sqlsage.domain.errors import TrainingDataImportError
from sqlsage.domain.models import (
    DDLItem,
    DocumentationItem,
    QuestionSQLPair,
    TrainingData,
    TrainingDataExport,
    TrainingStatistics,
)

@runtime_checkable
class KnowledgeStore(Protocol):
    """Storage contract for question/SQL pairs, DDL and documentation.

    Both the in-memory store and the Qdrant store implement this, so the
    SQLGenerator never needs to know which one it holds.
    """

    def add_question_sql(self, question: str, sql: str, embedding: List[float]) -> str: ...

    def add_ddl(self, ddl: str, embedding: List[float], table_name: Optional[str] = None) -> str: ...

    def add_documentation(self, documentation: str, embedding: List[float], title: Optional[str] = None) -> str: ...

    def get_similar_question_sql(self, embedding: List[float], limit: int = 5) -> List[QuestionSQLPair]: ...

    def get_related_ddl(self, embedding: List[float], limit: int = 10) -> List[DDLItem]: ...

    def get_related_documentation(self, embedding: List[float], limit: int = 5) -> List[DocumentationItem]: ...

    def remove_training_data(self, id: str) -> bool: ...

    def get_training_data(self) -> TrainingData: ...

    def get_statistics(self) -> TrainingStatistics: ...

    def find_ddl_by_table_name(self, table_name: str) -> List[DDLItem]: ...

    def search_question_sql(self, query: str) -> List[QuestionSQLPair]: ...

    def clear(self) -> None: ...

    def export_json(self) -> str: ...

    def import_json(self, json_data: str) -> None: ...

def statistics_for(data: TrainingData) -> TrainingStatistics:
    qs, ddl, doc = len(data.question_sql), len(data.ddl), len(data.documentation)
    return TrainingStatistics(question_sql_count=qs, ddl_count=ddl, documentation_count=doc, total_items=qs + ddl + doc)

def dump_training_data(data: TrainingData) -> str:
    export = TrainingDataExport(
        question_sql_pairs=data.question_sql,
        ddl_items=data.ddl,
        documentation_items=data.documentation,
        exported_at=datetime.now(timezone.utc).isoformat(),
    )
    return export.model_dump_json(by_alias=True, indent=2)

def load_training_data(json_data: str) -> TrainingDataExport:
    try:
        return TrainingDataExport.model_validate_json(json_data)
    except ValidationError as e:
        raise TrainingDataImportError(f"Failed to import data: {e}") from e

def filter_ddl_by_table_name(items: List[DDLItem], table_name: str) -> List[DDLItem]:
    needle = table_name.lower()
    return [i for i in items if (i.table_name or "").lower() == needle or needle in i.ddl.lower()]

def filter_question_sql(items: List[QuestionSQLPair], query: str) -> List[QuestionSQLPair]:
    needle = query.lower()
    return [i for i in items if needle in i.question.lower() or needle in i.sql.lower()]
