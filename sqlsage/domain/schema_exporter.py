# domain/schema_exporter.py
import json
import re
from datetime import datetime, timezone

from sqlsage.domain.errors import ConfigurationError
from sqlsage.domain.models import ColumnSchema, DatabaseSchema, TableSchema

EXPORT_FORMATS = ("json", "pydantic", "sqlalchemy")

PYTHON_TYPES = {
    "int": "int", "integer": "int", "smallint": "int", "bigint": "int", "tinyint": "int",
    "serial": "int", "bigserial": "int", "smallserial": "int",
    "decimal": "Decimal", "numeric": "Decimal",
    "float": "float", "double": "float", "real": "float",
    "bool": "bool", "boolean": "bool",
    "date": "date", "datetime": "datetime", "timestamp": "datetime", "timestamptz": "datetime",
    "json": "dict", "jsonb": "dict",
}

SQLALCHEMY_TYPES = {
    "int": "Integer", "integer": "Integer", "smallint": "SmallInteger", "tinyint": "SmallInteger",
    "bigint": "BigInteger", "serial": "Integer", "bigserial": "BigInteger", "smallserial": "SmallInteger",
    "decimal": "Numeric", "numeric": "Numeric",
    "float": "Float", "double": "Float", "real": "Float",
    "bool": "Boolean", "boolean": "Boolean",
    "date": "Date", "datetime": "DateTime", "timestamp": "DateTime", "timestamptz": "DateTime",
    "text": "Text", "json": "JSON", "jsonb": "JSON",
}

def _base_type(col: ColumnSchema) -> str:
    return re.split(r"[\s(]", col.type.strip().lower(), maxsplit=1)[0]

def _length(col: ColumnSchema) -> str | None:
    m = re.search(r"\((\d+)\)", col.type)
    return m.group(1) if m else None

def to_pascal_case(name: str) -> str:
    return "".join(part.capitalize() for part in re.split(r"[_\W]+", name) if part)

def export_to_json(schema: DatabaseSchema, include_foreign_keys: bool = True, include_indexes: bool = True) -> str:
    tables = []
    for table in schema.tables:
        entry = {"name": table.name, "columns": [c.model_dump(exclude_none=True) for c in table.columns]}
        if include_foreign_keys and table.foreign_keys:
            entry["foreignKeys"] = [fk.model_dump() for fk in table.foreign_keys]
        if include_indexes and table.indexes:
            entry["indexes"] = [ix.model_dump() for ix in table.indexes]
        tables.append(entry)
    return json.dumps({
        "version": schema.version,
        "database": schema.database,
        "tables": tables,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
    }, indent=2)

def _pydantic_class(table: TableSchema) -> str:
    lines = [f"class {to_pascal_case(table.name)}(BaseModel):"]
    for col in table.columns or []:
        py_type = PYTHON_TYPES.get(_base_type(col), "str")
        if col.nullable:
            lines.append(f"    {col.name}: Optional[{py_type}] = None")
        else:
            lines.append(f"    {col.name}: {py_type}")
    if not table.columns:
        lines.append("    pass")
    return "\n".join(lines)

def export_to_pydantic(schema: DatabaseSchema) -> str:
    header = [
        "# Generated pydantic models from database schema",
        "from datetime import date, datetime",
        "from decimal import Decimal",
        "from typing import Optional",
        "",
        "from pydantic import BaseModel",
        "",
    ]
    classes = [_pydantic_class(t) for t in schema.tables]
    return "\n".join(header) + "\n\n" + "\n\n\n".join(classes) + "\n"

def _sqlalchemy_column(table: TableSchema, col: ColumnSchema) -> str:
    sa_type = SQLALCHEMY_TYPES.get(_base_type(col))
    if sa_type is None:
        length = _length(col)
        sa_type = f"String({length})" if length else "String"
    args = [sa_type]
    fk = next((fk for fk in table.foreign_keys if fk.column == col.name), None)
    if fk is not None:
        args.append(f'ForeignKey("{fk.referenced_table}.{fk.referenced_column}")')
    is_pk = col.primary_key or (table.primary_key is not None and col.name in table.primary_key)
    if is_pk:
        args.append("primary_key=True")
    if col.auto_increment and is_pk:
        args.append("autoincrement=True")
    if col.unique:
        args.append("unique=True")
    if not col.nullable and not is_pk:
        args.append("nullable=False")
    return f"    {col.name} = Column({', '.join(args)})"

def export_to_sqlalchemy(schema: DatabaseSchema) -> str:
    header = [
        "# Generated SQLAlchemy models from database schema",
        "from sqlalchemy import (BigInteger, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer,",
        "                        JSON, Numeric, SmallInteger, String, Text)",
        "from sqlalchemy.orm import declarative_base",
        "",
        "Base = declarative_base()",
        "",
    ]
    classes = []
    for table in schema.tables:
        lines = [f"class {to_pascal_case(table.name)}(Base):", f'    __tablename__ = "{table.name}"', ""]
        lines.extend(_sqlalchemy_column(table, col) for col in table.columns)
        classes.append("\n".join(lines))
    return "\n".join(header) + "\n\n" + "\n\n\n".join(classes) + "\n"

def export_schema(schema: DatabaseSchema, fmt: str, **options) -> str:
    if fmt == "json":
        return export_to_json(schema, **options)
    if fmt == "pydantic":
        return export_to_pydantic(schema)
    if fmt == "sqlalchemy":
        return export_to_sqlalchemy(schema)
    raise ConfigurationError(f"Unsupported export format: {fmt} (expected one of {', '.join(EXPORT_FORMATS)})")
