# domain/models.py
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Training data

class QuestionSQLPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    question: str
    sql: str
    embedding: Optional[List[float]] = None

class DDLItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    ddl: str
    table_name: Optional[str] = None
    embedding: Optional[List[float]] = None

class DocumentationItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    documentation: str
    title: Optional[str] = None
    embedding: Optional[List[float]] = None

class TrainingData(BaseModel):
    question_sql: List[QuestionSQLPair] = []
    ddl: List[DDLItem] = []
    documentation: List[DocumentationItem] = []

class TrainingStatistics(BaseModel):
    question_sql_count: int
    ddl_count: int
    documentation_count: int
    total_items: int

class TrainingDataExport(BaseModel):
    """Wire format of export/import; keys are camelCase for compatibility."""
    model_config = ConfigDict(populate_by_name=True)

    question_sql_pairs: Optional[List[QuestionSQLPair]] = Field(default=None, alias="questionSQLPairs")
    ddl_items: Optional[List[DDLItem]] = Field(default=None, alias="ddlItems")
    documentation_items: Optional[List[DocumentationItem]] = Field(default=None, alias="documentationItems")
    exported_at: Optional[str] = Field(default=None, alias="exportedAt")

class TrainingPlanItem(BaseModel):
    type: Literal["ddl", "documentation", "question-sql"]
    name: str
    value: str
    group: Optional[str] = None

class TrainingPlan(BaseModel):
    items: List[TrainingPlanItem] = []

# Schema view rebuilt from DDL

class ColumnSchema(BaseModel):
    name: str
    type: str
    nullable: bool = True
    default_value: Optional[str] = None
    primary_key: bool = False
    auto_increment: bool = False
    unique: bool = False

class ForeignKeySchema(BaseModel):
    column: str
    referenced_table: str
    referenced_column: str

class IndexSchema(BaseModel):
    name: str
    columns: List[str]
    unique: bool = False

class TableSchema(BaseModel):
    name: str
    columns: List[ColumnSchema] = []
    primary_key: Optional[List[str]] = None
    foreign_keys: List[ForeignKeySchema] = []
    indexes: List[IndexSchema] = []

class DatabaseSchema(BaseModel):
    tables: List[TableSchema] = []
    version: str = "1.0.0"
    database: Optional[str] = None

# LLM / embedding exchange

class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

class TokenUsage(BaseModel):
    prompt_tokens: int
    total_tokens: int

class EmbeddingResult(BaseModel):
    vector: List[float]
    usage: Optional[TokenUsage] = None

# Generation

class QueryType(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    UNKNOWN = "UNKNOWN"

class SQLGenerationOptions(BaseModel):
    output_format: Literal["sql", "sqlalchemy"] = "sql"
    include_explanation: bool = False
    allow_llm_to_see_data: bool = False

class SQLMetadata(BaseModel):
    tables_used: List[str] = []
    columns_used: List[str] = []
    query_type: QueryType = QueryType.UNKNOWN
    similar_questions: List[QuestionSQLPair] = []
    related_ddl: List[DDLItem] = []
    related_docs: List[DocumentationItem] = []

class SQLGenerationResponse(BaseModel):
    sql: str
    orm_code: Optional[str] = None
    explanation: Optional[str] = None
    metadata: SQLMetadata

class AskResult(BaseModel):
    sql: Optional[str] = None
    results: Optional[Any] = None
    explanation: Optional[str] = None

class GeneratedTrainingData(BaseModel):
    generated_count: int
    questions: List[QuestionSQLPair] = []
