# reasoning/prompt_templates.py
import json
import math
from typing import Any, List, Optional, Sequence

from sqlsage.domain.models import (
    DatabaseSchema,
    DDLItem,
    DocumentationItem,
    Message,
    QuestionSQLPair,
    SQLGenerationOptions,
)

MAX_EXAMPLES = 3
INTERMEDIATE_SQL_MARKER = "intermediate_sql"

QUERY_CATEGORIES = {
    "basic": "basic CRUD operations",
    "advanced": "complex joins and subqueries",
    "analytics": "analytics and reporting",
}

def system_message(content: str) -> Message:
    return Message(role="system", content=content)

def user_message(content: str) -> Message:
    return Message(role="user", content=content)

def assistant_message(content: str) -> Message:
    return Message(role="assistant", content=content)

def response_language(language: Optional[str]) -> str:
    return f"Respond in the {language} language." if language else ""

def sql_prompt(
    question: str,
    question_sql_list: Sequence[QuestionSQLPair],
    ddl_list: Sequence[DDLItem],
    doc_list: Sequence[DocumentationItem],
    dialect: str,
    options: SQLGenerationOptions,
    language: Optional[str] = None,
) -> List[Message]:
    output_format = options.output_format
    system = (
        f"You are a {dialect} expert. Generate a {output_format.upper()} query to answer the question. "
        "Your response should ONLY be based on the given context."
    )

    if ddl_list:
        system += "\n\n===Tables\n"
        system += "".join(f"{d.ddl}\n\n" for d in ddl_list)

    if doc_list:
        system += "\n\n===Additional Context\n"
        system += "".join(f"{d.documentation}\n\n" for d in doc_list)

    guidelines = [
        "Generate valid SQL without explanations if the provided context is sufficient",
        f"If the context is almost sufficient but you need to know specific values in a column, "
        f"generate an {INTERMEDIATE_SQL_MARKER} query to explore the data first and prepend it with "
        f"a comment saying {INTERMEDIATE_SQL_MARKER}",
        "Explain why the query cannot be generated if the provided context is insufficient",
        "Use the most relevant table(s)",
        f"Ensure that the output SQL is {dialect}-compliant and executable, and free of syntax errors",
    ]
    if output_format == "sqlalchemy":
        guidelines.append(
            "Generate SQLAlchemy 2.0 Python code with all necessary imports, using typed "
            "select()/Table constructs instead of raw SQL strings"
        )
    system += "\n\n===Response Guidelines\n"
    system += "".join(f"{i}. {g}\n" for i, g in enumerate(guidelines, start=1))

    lang = response_language(language)
    if lang:
        system += f"\n{lang}\n"

    messages = [system_message(system)]
    for example in list(question_sql_list)[:MAX_EXAMPLES]:
        messages.append(user_message(example.question))
        messages.append(assistant_message(example.sql))
    messages.append(user_message(question))
    return messages

def question_from_sql_prompt(sql: str, language: Optional[str] = None) -> List[Message]:
    instruction = (
        "Generate a natural language question that this SQL query answers. "
        "Return only the question without explanations."
    )
    lang = response_language(language)
    return [system_message(f"{instruction} {lang}".strip()), user_message(sql)]

def sql_to_orm_prompt(sql: str) -> List[Message]:
    return [
        system_message(
            "Convert the following SQL query to SQLAlchemy 2.0 Python code. "
            "Use select()/insert()/update()/delete() constructs with proper imports and "
            "return the code in a ```python fenced block."
        ),
        user_message(sql),
    ]

def followup_questions_prompt(question: str, sql: str, results: Any = None, count: int = 5) -> List[Message]:
    rendered = json.dumps(results, default=str)[:500] if results else "No results"
    return [
        system_message(
            f"Generate {count} follow-up questions based on the original question and SQL results. "
            "Return one question per line."
        ),
        user_message(f"Original question: {question}\nSQL: {sql}\nResults: {rendered}"),
    ]

def explain_sql_prompt(sql: str) -> List[Message]:
    return [
        system_message("Explain the following SQL query in simple terms. Describe what it does and how it works."),
        user_message(sql),
    ]

def _describe_schema(schema: DatabaseSchema) -> str:
    lines = []
    for table in schema.tables:
        lines.append(f"\nTable: {table.name}")
        lines.append("Columns:")
        for col in table.columns:
            flags = ("" if col.nullable else " NOT NULL") + (" PRIMARY KEY" if col.primary_key else "")
            lines.append(f"  - {col.name} ({col.type}){flags}")
        if table.primary_key:
            lines.append(f"Primary Key: {', '.join(table.primary_key)}")
        if table.foreign_keys:
            lines.append("Foreign Keys:")
            for fk in table.foreign_keys:
                lines.append(f"  - {fk.column} -> {fk.referenced_table}.{fk.referenced_column}")
    return "\n".join(lines)

def schema_analysis_prompt(schema: DatabaseSchema, category: str, num_questions: float, dialect: str) -> str:
    return f"""You are a SQL expert. Analyze the following database schema and generate {math.ceil(num_questions)} diverse {category} questions with their corresponding SQL queries.

Database Schema:
{_describe_schema(schema)}

Requirements:
1. Generate realistic, practical questions that users might actually ask
2. Ensure SQL queries are syntactically correct for {dialect}
3. Cover different types of operations appropriate for the category
4. Use proper table and column names from the schema
5. Include WHERE clauses, JOINs, aggregations, etc. as appropriate

Format your response as:
Question: [Natural language question]
SQL: [SQL query]

Question: [Next question]
SQL: [Next SQL query]

..."""
