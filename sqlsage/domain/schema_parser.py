# domain/schema_parser.py
import re
from typing import List, Optional

from sqlsage.domain.models import ColumnSchema, DatabaseSchema, ForeignKeySchema, TableSchema

# Regex-based on purpose: good enough to describe a schema to the LLM, not a SQL parser.
CREATE_TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:[`\"]?\w+[`\"]?\.)?[`\"]?(\w+)[`\"]?\s*\((.*?)\)\s*;",
    re.IGNORECASE | re.DOTALL,
)
COLUMN_RE = re.compile(r"^[`\"]?(\w+)[`\"]?\s+(\w+(?:\s*\([^)]*\))?)\s*(.*)$", re.IGNORECASE | re.DOTALL)
TABLE_PK_RE = re.compile(r"primary\s+key\s*\(([^)]+)\)", re.IGNORECASE)
TABLE_FK_RE = re.compile(
    r"foreign\s+key\s*\(([^)]+)\)\s+references\s+[`\"]?(\w+)[`\"]?\s*\(([^)]+)\)", re.IGNORECASE
)
INLINE_FK_RE = re.compile(r"references\s+[`\"]?(\w+)[`\"]?\s*\(([^)]+)\)", re.IGNORECASE)
DEFAULT_RE = re.compile(r"default\s+('[^']*'|\"[^\"]*\"|[^\s,]+)", re.IGNORECASE)

TABLE_CONSTRAINT_RE = re.compile(
    r"^(primary\s+key|foreign\s+key|constraint\s|unique\s*(\(|key\s|index\s)|(index|key)\s|check\s*\()",
    re.IGNORECASE,
)

def _strip_quotes(name: str) -> str:
    return name.strip().strip('`"')

def split_definitions(body: str) -> List[str]:
    """Split a CREATE TABLE body on top-level commas (keeps DECIMAL(10,2) intact)."""
    parts, depth, current = [], 0, []
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]

def parse_column(definition: str) -> Optional[ColumnSchema]:
    m = COLUMN_RE.match(definition.strip())
    if not m:
        return None
    name, col_type, constraints = m.group(1), m.group(2), m.group(3)
    lowered = constraints.lower()
    column = ColumnSchema(
        name=name,
        type=col_type,
        nullable="not null" not in lowered and "primary key" not in lowered,
        primary_key="primary key" in lowered,
        unique="unique" in lowered,
        auto_increment="auto_increment" in lowered or "identity" in lowered or "autoincrement" in lowered
        or col_type.lower() in ("serial", "bigserial", "smallserial"),
    )
    dm = DEFAULT_RE.search(constraints)
    if dm:
        column.default_value = dm.group(1).strip("'\"")
    return column

def parse_table(name: str, body: str) -> TableSchema:
    table = TableSchema(name=name)
    for definition in split_definitions(body):
        if TABLE_CONSTRAINT_RE.match(definition):
            pk = TABLE_PK_RE.search(definition)
            if pk:
                table.primary_key = [_strip_quotes(c) for c in pk.group(1).split(",")]
            fk = TABLE_FK_RE.search(definition)
            if fk:
                table.foreign_keys.append(ForeignKeySchema(
                    column=_strip_quotes(fk.group(1)),
                    referenced_table=fk.group(2),
                    referenced_column=_strip_quotes(fk.group(3)),
                ))
            continue

        column = parse_column(definition)
        if column is None:
            continue
        table.columns.append(column)
        inline_fk = INLINE_FK_RE.search(definition)
        if inline_fk:
            table.foreign_keys.append(ForeignKeySchema(
                column=column.name,
                referenced_table=inline_fk.group(1),
                referenced_column=_strip_quotes(inline_fk.group(2)),
            ))

    if table.primary_key is None:
        inline_pk = [c.name for c in table.columns if c.primary_key]
        table.primary_key = inline_pk or None
    return table

def parse_ddl(ddl_content: str, database: Optional[str] = None) -> DatabaseSchema:
    tables = [parse_table(m.group(1), m.group(2)) for m in CREATE_TABLE_RE.finditer(ddl_content)]
    return DatabaseSchema(tables=tables, database=database)

def schema_to_context(schema: DatabaseSchema) -> str:
    lines = ["Database Schema:", ""]
    for table in schema.tables:
        lines.append(f"Table: {table.name}")
        lines.append("Columns:")
        for col in table.columns:
            line = f"  - {col.name}: {col.type}"
            if not col.nullable:
                line += " NOT NULL"
            if col.primary_key:
                line += " PRIMARY KEY"
            if col.unique:
                line += " UNIQUE"
            if col.default_value:
                line += f" DEFAULT {col.default_value}"
            lines.append(line)
        if table.foreign_keys:
            lines.append("Foreign Keys:")
            for fk in table.foreign_keys:
                lines.append(f"  - {fk.column} -> {fk.referenced_table}.{fk.referenced_column}")
        lines.append("")
    return "\n".join(lines)
