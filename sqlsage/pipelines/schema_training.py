# pipelines/schema_training.py
import logging
from typing import TYPE_CHECKING, List, Optional

from sqlsage.domain.errors import ConfigurationError
from sqlsage.domain.models import GeneratedTrainingData, QuestionSQLPair
from sqlsage.reasoning.extraction import parse_generated_questions
from sqlsage.reasoning.prompt_templates import QUERY_CATEGORIES, schema_analysis_prompt, system_message

if TYPE_CHECKING:
    from sqlsage.reasoning.sql_generator import SQLGenerator

logger = logging.getLogger(__name__)

class SchemaTrainingGenerator:
    """Asks the LLM for question/SQL pairs covering the trained DDL and trains on the new ones."""

    def __init__(self, generator: "SQLGenerator"):
        self.generator = generator

    def generate(
        self,
        num_questions: int = 10,
        include_basic_queries: bool = True,
        include_advanced_queries: bool = True,
        include_analytics_queries: bool = True,
        custom_prompt: Optional[str] = None,
    ) -> GeneratedTrainingData:
        existing = self.generator.get_training_data()
        seen = {q.question.lower() for q in existing.question_sql}

        schema = self.generator.get_schema_info()
        if schema is None or not schema.tables:
            raise ConfigurationError("No schema information available. Please train with DDL statements first.")
        logger.info(f"Analyzing schema with {len(schema.tables)} tables...")

        categories = []
        if include_basic_queries:
            categories.append(QUERY_CATEGORIES["basic"])
        if include_advanced_queries:
            categories.append(QUERY_CATEGORIES["advanced"])
        if include_analytics_queries:
            categories.append(QUERY_CATEGORIES["analytics"])

        candidates: List[QuestionSQLPair] = []
        for category in categories:
            prompt = custom_prompt or schema_analysis_prompt(
                schema, category, num_questions / len(categories), self.generator.dialect
            )
            try:
                response = self.generator.submit_prompt([system_message(prompt)])
            except Exception:
                logger.exception(f"Error generating {category} questions")
                continue

            for pair in parse_generated_questions(response):
                key = pair.question.lower()
                if key in seen:
                    logger.debug(f"Skipping duplicate question: {pair.question!r}")
                    continue
                seen.add(key)
                candidates.append(pair)

        trained = 0
        for pair in candidates:
            try:
                self.generator.add_question_sql(pair.question, pair.sql)
            except Exception:
                logger.exception(f"Failed to train: {pair.question!r}")
                continue
            trained += 1
            logger.info(f"Trained: {pair.question!r}")

        return GeneratedTrainingData(generated_count=trained, questions=candidates)
