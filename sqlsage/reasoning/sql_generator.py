# reasoning/sql_generator.py
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlsage.config.settings import Settings, settings as default_settings
from sqlsage.domain.errors import ConfigurationError
from sqlsage.domain.models import (
    AskResult,
    DatabaseSchema,
    DDLItem,
    DocumentationItem,
    GeneratedTrainingData,
    Message,
    QuestionSQLPair,
    SQLGenerationOptions,
    SQLGenerationResponse,
    SQLMetadata,
    TrainingData,
    TrainingPlan,
    TrainingStatistics,
)
from sqlsage.domain.schema_exporter import export_schema
from sqlsage.domain.schema_parser import parse_ddl, schema_to_context
from sqlsage.infra.database import SQLRunner
from sqlsage.infra.embedding_client import Embedder, build_embedder
from sqlsage.infra.llm_client import LLMClient
from sqlsage.infra.qdrant_client import QdrantKnowledgeStore
from sqlsage.pipelines.ingest_schema import ingest_database_schema
from sqlsage.pipelines.schema_training import SchemaTrainingGenerator
from sqlsage.reasoning import extraction
from sqlsage.reasoning.prompt_templates import (
    INTERMEDIATE_SQL_MARKER,
    explain_sql_prompt,
    followup_questions_prompt,
    question_from_sql_prompt,
    sql_prompt,
    sql_to_orm_prompt,
)
from sqlsage.retrieval.knowledge_store import KnowledgeStore
from sqlsage.retrieval.memory_store import MemoryKnowledgeStore

logger = logging.getLogger(__name__)

RunSQL = Callable[[str], Any]

class SQLGenerator:
    """Retrieval-augmented text-to-SQL engine.

    Holds an LLM (``submit_prompt(messages) -> str``), an embedder
    (``embed(text) -> EmbeddingResult``) and a KnowledgeStore. ``run_sql`` is
    optional; without it the engine only generates SQL.
    """

    def __init__(
        self,
        llm,
        embedder: Embedder,
        store: KnowledgeStore,
        run_sql: Optional[RunSQL] = None,
        dialect: str = "PostgreSQL",
        language: Optional[str] = None,
        max_tokens: int = 14000,
    ):
        self.llm = llm
        self.embedder = embedder
        self.store = store
        self.run_sql = run_sql
        self.dialect = dialect
        self.language = language
        # informational; callers trim retrieval to stay within it
        self.max_tokens = max_tokens
        self.schema: Optional[DatabaseSchema] = None

    @classmethod
    def from_settings(
        cls,
        cfg: Settings | None = None,
        run_sql: Optional[RunSQL] = None,
        store: Optional[KnowledgeStore] = None,
    ) -> "SQLGenerator":
        cfg = cfg or default_settings
        if store is None:
            if cfg.VECTOR_STORE == "qdrant":
                store = QdrantKnowledgeStore.from_settings(cfg)
                store.initialize()
            elif cfg.VECTOR_STORE == "memory":
                store = MemoryKnowledgeStore(embedding_dim=cfg.EMBEDDING_DIM)
            else:
                raise ConfigurationError(f"Unsupported vector store: {cfg.VECTOR_STORE}")

        dialect = cfg.DIALECT
        if run_sql is None and cfg.TARGET_DB_URL:
            runner = SQLRunner(cfg.TARGET_DB_URL)
            run_sql, dialect = runner, runner.dialect

        return cls(
            llm=LLMClient(cfg),
            embedder=build_embedder(cfg),
            store=store,
            run_sql=run_sql,
            dialect=dialect,
            language=cfg.LANGUAGE,
            max_tokens=cfg.MAX_TOKENS,
        )

    def connect_to_database(self, engine_or_url) -> SQLRunner:
        runner = SQLRunner(engine_or_url)
        self.run_sql = runner
        self.dialect = runner.dialect
        logger.info(f"Connected to {self.dialect} database")
        return runner

    def train_from_database(self, engine_or_url=None, **options) -> List[str]:
        """Reflect a live database into DDL training data; defaults to the connected one."""
        if engine_or_url is None:
            if not isinstance(self.run_sql, SQLRunner):
                raise ConfigurationError("No database connected. Pass an engine or URL, or call connect_to_database().")
            engine_or_url = self.run_sql.engine
        return ingest_database_schema(self, engine_or_url, **options)

    # LLM / embeddings

    def submit_prompt(self, messages: List[Message]) -> str:
        return self.llm.submit_prompt(messages)

    def get_llm_config(self) -> Dict[str, Any]:
        return self.llm.get_config()

    def update_llm_config(self, **changes: Any) -> None:
        self.llm.update_config(**changes)

    def generate_embedding(self, text: str) -> List[float]:
        return self.embedder.embed(text).vector

    # retrieval

    def get_similar_question_sql(self, question: str) -> List[QuestionSQLPair]:
        return self.store.get_similar_question_sql(self.generate_embedding(question))

    def get_related_ddl(self, question: str) -> List[DDLItem]:
        return self.store.get_related_ddl(self.generate_embedding(question))

    def get_related_documentation(self, question: str) -> List[DocumentationItem]:
        return self.store.get_related_documentation(self.generate_embedding(question))

    # training primitives

    def add_question_sql(self, question: str, sql: str) -> str:
        return self.store.add_question_sql(question, sql, self.generate_embedding(f"{question} {sql}"))

    def add_ddl(self, ddl: str) -> str:
        table_name = extraction.extract_table_name_from_ddl(ddl)
        return self.store.add_ddl(ddl, self.generate_embedding(ddl), table_name=table_name)

    def add_documentation(self, documentation: str, title: Optional[str] = None) -> str:
        return self.store.add_documentation(documentation, self.generate_embedding(documentation), title=title)

    def remove_training_data(self, id: str) -> bool:
        return self.store.remove_training_data(id)

    def get_training_data(self) -> TrainingData:
        return self.store.get_training_data()

    def get_training_statistics(self) -> TrainingStatistics:
        return self.store.get_statistics()

    def clear_training_data(self) -> None:
        self.store.clear()

    def export_training_data(self) -> str:
        return self.store.export_json()

    def import_training_data(self, json_data: str) -> None:
        self.store.import_json(json_data)

    # generation

    def generate_sql(self, question: str, options: Optional[SQLGenerationOptions] = None) -> SQLGenerationResponse:
        options = options or SQLGenerationOptions()

        question_sql_list = self.get_similar_question_sql(question)
        ddl_list = self.get_related_ddl(question)
        doc_list = self.get_related_documentation(question)

        prompt = sql_prompt(question, question_sql_list, ddl_list, doc_list, self.dialect, options, self.language)
        logger.debug(f"SQL prompt built with {len(prompt)} messages")
        llm_response = self.submit_prompt(prompt)
        sql = extraction.extract_sql(llm_response)

        if INTERMEDIATE_SQL_MARKER in sql and options.allow_llm_to_see_data and self.run_sql is not None:
            try:
                logger.info("Running intermediate SQL...")
                intermediate_sql = extraction.extract_sql(sql)
                intermediate_results = self.run_sql(intermediate_sql)
                extra_doc = DocumentationItem(
                    id="intermediate-results",
                    documentation=f"Intermediate results: {json.dumps(intermediate_results, default=str)}",
                    title="Intermediate Query Results",
                )
                final_prompt = sql_prompt(
                    question, question_sql_list, ddl_list, [*doc_list, extra_doc],
                    self.dialect, options, self.language,
                )
                llm_response = self.submit_prompt(final_prompt)
                sql = extraction.extract_sql(llm_response)
            except Exception:
                logger.exception("Error running intermediate SQL; keeping the first answer")

        orm_code = self.sql_to_orm(sql) if options.output_format == "sqlalchemy" else None
        explanation = extraction.extract_explanation(llm_response) if options.include_explanation else None

        return SQLGenerationResponse(
            sql=sql,
            orm_code=orm_code,
            explanation=explanation,
            metadata=SQLMetadata(
                tables_used=extraction.extract_tables_used(sql),
                columns_used=extraction.extract_columns_used(sql),
                query_type=extraction.extract_query_type(sql),
                similar_questions=question_sql_list,
                related_ddl=ddl_list,
                related_docs=doc_list,
            ),
        )

    def ask(self, question: str, auto_train: bool = True, allow_llm_to_see_data: bool = False) -> AskResult:
        try:
            response = self.generate_sql(
                question,
                SQLGenerationOptions(allow_llm_to_see_data=allow_llm_to_see_data, include_explanation=True),
            )
        except Exception:
            logger.exception(f"Error generating SQL for question: {question!r}")
            return AskResult(sql=None, results=None)

        logger.info(f"Generated SQL: {response.sql}")
        if self.run_sql is None:
            logger.info("No database connected; returning SQL without running it")
            return AskResult(sql=response.sql, results=None, explanation=response.explanation)
        if not response.sql:
            logger.warning("Model returned no SQL; nothing to run")
            return AskResult(sql=response.sql, results=None, explanation=response.explanation)

        if isinstance(self.run_sql, SQLRunner):
            ok, err = self.run_sql.dry_run(response.sql)
            if not ok:
                logger.warning(f"Generated SQL failed validation, not running it: {err}")
                return AskResult(sql=response.sql, results=None, explanation=response.explanation)

        try:
            results = self.run_sql(response.sql)
        except Exception:
            logger.exception("Error running SQL")
            return AskResult(sql=response.sql, results=None, explanation=response.explanation)

        if results and auto_train:
            try:
                self.add_question_sql(question, response.sql)
            except Exception:
                logger.exception("Auto-training failed; the answer is returned anyway")

        return AskResult(sql=response.sql, results=results, explanation=response.explanation)

    def train(
        self,
        question: Optional[str] = None,
        sql: Optional[str] = None,
        ddl: Optional[str] = None,
        documentation: Optional[str] = None,
        plan: Optional[TrainingPlan] = None,
    ) -> str:
        if question and not sql:
            raise ConfigurationError("Please also provide a SQL query when training with a question")

        if documentation:
            logger.info("Adding documentation...")
            return self.add_documentation(documentation)

        if sql:
            if not question:
                question = self.generate_question(sql)
                logger.info(f"Generated question for SQL: {question}")
            logger.info("Adding question-SQL pair...")
            return self.add_question_sql(question, sql)

        if ddl:
            logger.info("Adding DDL...")
            return self.add_ddl(ddl)

        if plan:
            results = ""
            for item in plan.items:
                if item.type == "ddl":
                    results += self.add_ddl(item.value) + "\n"
                elif item.type == "documentation":
                    results += self.add_documentation(item.value, title=item.name or None) + "\n"
                elif item.type == "question-sql":
                    results += self.add_question_sql(item.name, item.value) + "\n"
            return results

        raise ConfigurationError("Please provide at least one of: question+sql, ddl, documentation, or plan")

    # auxiliary model calls

    def generate_question(self, sql: str) -> str:
        return self.submit_prompt(question_from_sql_prompt(sql, self.language)).strip()

    def sql_to_orm(self, sql: str) -> str:
        return extraction.extract_code(self.submit_prompt(sql_to_orm_prompt(sql)), "python")

    def generate_followup_questions(self, question: str, sql: str, results: Any = None, count: int = 5) -> List[str]:
        response = self.submit_prompt(followup_questions_prompt(question, sql, results, count))
        return [line.strip() for line in response.splitlines() if line.strip()][:count]

    def explain_sql(self, sql: str) -> str:
        return self.submit_prompt(explain_sql_prompt(sql))

    @staticmethod
    def validate_sql(sql: str) -> bool:
        return extraction.validate_sql(sql)

    # schema

    def get_schema_info(self) -> Optional[DatabaseSchema]:
        ddl_items = self.get_training_data().ddl
        if not ddl_items:
            return None
        return parse_ddl("\n\n".join(d.ddl for d in ddl_items))

    def set_schema(self, schema: DatabaseSchema) -> None:
        self.schema = schema

    def get_schema(self) -> Optional[DatabaseSchema]:
        return self.schema

    def load_schema_from_ddl(self, ddl_content: str) -> DatabaseSchema:
        self.schema = parse_ddl(ddl_content)
        self.add_ddl(ddl_content)
        self.add_documentation(schema_to_context(self.schema), title="Database Schema")
        return self.schema

    def add_table(self, ddl: str) -> str:
        item_id = self.add_ddl(ddl)
        if self.schema is not None:
            self.schema.tables.extend(parse_ddl(ddl).tables)
        return item_id

    def export_schema(self, fmt: str, **options) -> str:
        if self.schema is None:
            raise ConfigurationError("No schema loaded. Load a schema first.")
        return export_schema(self.schema, fmt, **options)

    def generate_training_data_from_schema(self, **options) -> GeneratedTrainingData:
        return SchemaTrainingGenerator(self).generate(**options)
