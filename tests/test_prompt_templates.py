from sqlsage.domain.models import DDLItem, DocumentationItem, QuestionSQLPair, SQLGenerationOptions
from sqlsage.domain.schema_parser import parse_ddl
from sqlsage.reasoning.prompt_templates import schema_analysis_prompt, sql_prompt

DDL = "CREATE TABLE users (id SERIAL PRIMARY KEY, name VARCHAR(50));"

def _examples(n):
    return [QuestionSQLPair(question=f"question {i}", sql=f"SELECT {i};") for i in range(n)]

def test_message_layout_caps_examples_at_three():
    messages = sql_prompt(
        "how many users?",
        _examples(5),
        [DDLItem(ddl=DDL)],
        [DocumentationItem(documentation="Users are customers.")],
        "PostgreSQL",
        SQLGenerationOptions(),
    )
    assert [m.role for m in messages] == ["system", "user", "assistant", "user", "assistant", "user", "assistant", "user"]
    assert messages[1].content == "question 0"
    assert messages[2].content == "SELECT 0;"
    assert messages[-1].content == "how many users?"

def test_system_message_sections():
    system = sql_prompt(
        "q", [], [DDLItem(ddl=DDL)], [DocumentationItem(documentation="Users are customers.")],
        "MySQL", SQLGenerationOptions(),
    )[0].content
    assert system.startswith("You are a MySQL expert. Generate a SQL query")
    assert "===Tables\n" + DDL in system
    assert "===Additional Context\nUsers are customers." in system
    assert "===Response Guidelines" in system
    assert "intermediate_sql" in system
    assert "MySQL-compliant" in system
    assert "SQLAlchemy" not in system

def test_empty_context_sections_are_omitted():
    system = sql_prompt("q", [], [], [], "SQLite", SQLGenerationOptions())[0].content
    assert "===Tables" not in system
    assert "===Additional Context" not in system

def test_orm_format_adds_guideline_and_language():
    system = sql_prompt(
        "q", [], [], [], "PostgreSQL", SQLGenerationOptions(output_format="sqlalchemy"), language="French"
    )[0].content
    assert "Generate a SQLALCHEMY query" in system
    assert "6. Generate SQLAlchemy 2.0 Python code" in system
    assert "Respond in the French language." in system

def test_schema_analysis_prompt_lists_tables_and_rounds_up():
    schema = parse_ddl(
        DDL + "\nCREATE TABLE orders (id INT NOT NULL, user_id INT, PRIMARY KEY (id), "
        "FOREIGN KEY (user_id) REFERENCES users(id));"
    )
    prompt = schema_analysis_prompt(schema, "analytics and reporting", 10 / 3, "PostgreSQL")
    assert "generate 4 diverse analytics and reporting questions" in prompt
    assert "Table: users" in prompt
    assert "  - id (SERIAL) NOT NULL PRIMARY KEY" in prompt
    assert "Primary Key: id" in prompt
    assert "  - user_id -> users.id" in prompt
    assert "Question: [Natural language question]" in prompt
