# reasoning/extraction.py
import re
from typing import List, Optional

from sqlsage.domain.models import QueryType, QuestionSQLPair

# Order matters: explicitly fenced content beats bare statements found in prose.
SQL_PATTERNS = [
    re.compile(r"```sql\s*\n(.*?)```", re.IGNORECASE | re.DOTALL),
    re.compile(r"```\s*\n(.*?)```", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bCREATE\s+TABLE\b.*?\bAS\b.*?;", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bWITH\b .*?;", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bSELECT\b .*?;", re.IGNORECASE | re.DOTALL),
]

EXPLANATION_RE = re.compile(r"(?:Explanation|Description):\s*(.*?)(?:\n\s*\n|\Z)", re.IGNORECASE | re.DOTALL)
TABLES_RE = re.compile(r"\bFROM\s+(\w+)|\bJOIN\s+(\w+)|\bUPDATE\s+(\w+)|\bINSERT\s+INTO\s+(\w+)", re.IGNORECASE)
DDL_TABLE_NAME_RE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[`\"]?(\w+)[`\"]?", re.IGNORECASE)

QUESTION_LABEL = "Question:"
SQL_LABEL = "SQL:"

def extract_sql(llm_response: str) -> str:
    for pattern in SQL_PATTERNS:
        for m in pattern.finditer(llm_response):
            sql = (m.group(1) if m.groups() else m.group(0)).strip()
            # an empty fence is not an answer
            if sql:
                return sql
    return llm_response.strip()

def extract_code(response: str, language: str) -> str:
    m = re.search(rf"```{re.escape(language)}\s*\n(.*?)\n?```", response, re.IGNORECASE | re.DOTALL)
    return m.group(1).strip() if m else response.strip()

def extract_explanation(response: str) -> Optional[str]:
    m = EXPLANATION_RE.search(response)
    if not m:
        return None
    return m.group(1).strip() or None

def extract_query_type(sql: str) -> QueryType:
    head = sql.lstrip().upper()
    for query_type in (QueryType.SELECT, QueryType.INSERT, QueryType.UPDATE, QueryType.DELETE):
        if head.startswith(query_type.value):
            return query_type
    # CTEs almost always feed a read
    if head.startswith("WITH"):
        return QueryType.SELECT
    return QueryType.UNKNOWN

def extract_tables_used(sql: str) -> List[str]:
    tables: List[str] = []
    for m in TABLES_RE.finditer(sql):
        name = next(g for g in m.groups() if g)
        if name not in tables:
            tables.append(name)
    return tables

def extract_columns_used(sql: str) -> List[str]:
    # always empty: reliable column extraction would need a SQL parser
    return []

def extract_table_name_from_ddl(ddl: str) -> Optional[str]:
    m = DDL_TABLE_NAME_RE.search(ddl)
    return m.group(1) if m else None

def validate_sql(sql: str) -> bool:
    """Superficial check only: does the statement start like a query?"""
    return sql.strip().lower().startswith(("select", "insert", "update", "delete", "with"))

def parse_generated_questions(response: str) -> List[QuestionSQLPair]:
    pairs: List[QuestionSQLPair] = []
    question, sql = "", ""

    for line in response.splitlines():
        if line.startswith(QUESTION_LABEL):
            if question and sql:
                pairs.append(QuestionSQLPair(question=question.strip(), sql=sql.strip()))
            question = line[len(QUESTION_LABEL):].strip()
            sql = ""
        elif line.startswith(SQL_LABEL):
            sql = line[len(SQL_LABEL):].strip()
        elif sql and line.strip():
            # multi-line statements
            sql += "\n" + line.strip()

    if question and sql:
        pairs.append(QuestionSQLPair(question=question.strip(), sql=sql.strip()))
    return pairs
