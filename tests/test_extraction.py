import pytest

from sqlsage.domain.models import QueryType
from sqlsage.reasoning import extraction

def test_bare_select_is_extracted_from_prose():
    text = "Sure! Here you go:\nSELECT name\nFROM users\nWHERE id = 1;\nHope that helps."
    assert extraction.extract_sql(text) == "SELECT name\nFROM users\nWHERE id = 1;"

def test_fenced_sql_block_wins_over_bare_select():
    text = (
        "You might think of SELECT * FROM wrong; but instead use:\n"
        "```sql\nSELECT COUNT(*) FROM users;\n```\n"
        "Explanation: counts all users."
    )
    assert extraction.extract_sql(text) == "SELECT COUNT(*) FROM users;"

def test_sql_label_is_case_insensitive():
    assert extraction.extract_sql("```SQL\nSELECT 1;\n```") == "SELECT 1;"

def test_unlabelled_fence_is_second_choice():
    text = "Query:\n```\nSELECT id FROM orders;\n```"
    assert extraction.extract_sql(text) == "SELECT id FROM orders;"

def test_create_table_as_beats_select():
    text = "Run this: CREATE TABLE top_users AS SELECT * FROM users WHERE score > 10; then query it."
    assert extraction.extract_sql(text) == "CREATE TABLE top_users AS SELECT * FROM users WHERE score > 10;"

def test_with_statement_beats_select():
    text = "with recent AS (SELECT * FROM orders) SELECT count(*) FROM recent; done"
    assert extraction.extract_sql(text) == "with recent AS (SELECT * FROM orders) SELECT count(*) FROM recent;"

def test_fallback_is_whole_trimmed_response():
    assert extraction.extract_sql("  I cannot answer that with the given context.  \n") == (
        "I cannot answer that with the given context."
    )

def test_extract_code_for_language():
    response = "Here:\n```python\nfrom sqlalchemy import select\nstmt = select(users)\n```\n"
    assert extraction.extract_code(response, "python") == "from sqlalchemy import select\nstmt = select(users)"
    assert extraction.extract_code("no fence", "python") == "no fence"

def test_explanation_is_captured_until_blank_line():
    text = "SELECT 1;\n\nexplanation: returns one\nrow only.\n\nOther notes."
    assert extraction.extract_explanation(text) == "returns one\nrow only."
    assert extraction.extract_explanation("Description: to the end") == "to the end"
    assert extraction.extract_explanation("SELECT 1;") is None

@pytest.mark.parametrize(
    "sql, expected",
    [
        ("  select * from t", QueryType.SELECT),
        ("INSERT INTO t VALUES (1)", QueryType.INSERT),
        ("\nupdate t set a = 1", QueryType.UPDATE),
        ("DELETE FROM t", QueryType.DELETE),
        ("WITH x AS (SELECT 1) SELECT * FROM x", QueryType.SELECT),
        ("DROP TABLE t", QueryType.UNKNOWN),
    ],
)
def test_query_type(sql, expected):
    assert extraction.extract_query_type(sql) == expected

def test_tables_used_are_deduplicated_in_first_seen_order():
    sql = (
        "SELECT * FROM orders o JOIN users u ON u.id = o.user_id "
        "JOIN products p ON p.id = o.product_id WHERE o.id IN (SELECT order_id FROM users)"
    )
    assert extraction.extract_tables_used(sql) == ["orders", "users", "products"]
    assert extraction.extract_tables_used("insert into audit_log values (1)") == ["audit_log"]
    assert extraction.extract_tables_used("UPDATE accounts SET x = 1") == ["accounts"]

def test_columns_used_is_empty():
    assert extraction.extract_columns_used("SELECT a, b FROM t") == []

def test_table_name_from_ddl():
    assert extraction.extract_table_name_from_ddl("create table if not exists `orders` (id int);") == "orders"
    assert extraction.extract_table_name_from_ddl("ALTER TABLE x ADD y INT;") is None

def test_validate_sql():
    assert extraction.validate_sql("  WITH a AS (SELECT 1) SELECT * FROM a")
    assert not extraction.validate_sql("DROP TABLE users")

def test_parse_generated_questions_handles_multiline_sql():
    response = """Here are some questions.
Question: How many users are there?
SQL: SELECT COUNT(*)
FROM users;

Question: Which users signed up today?
SQL: SELECT * FROM users WHERE created_at::date = CURRENT_DATE;
Question: A question without SQL
"""
    pairs = extraction.parse_generated_questions(response)
    assert [(p.question, p.sql) for p in pairs] == [
        ("How many users are there?", "SELECT COUNT(*)\nFROM users;"),
        ("Which users signed up today?", "SELECT * FROM users WHERE created_at::date = CURRENT_DATE;"),
    ]

def test_empty_fence_falls_through_to_next_match():
    assert extraction.extract_sql("```sql\n```\nSELECT 1;") == "SELECT 1;"
    assert extraction.extract_sql("```sql\n```\n```sql\nSELECT 2;\n```") == "SELECT 2;"
