# pipelines/ingest_schema.py
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from sqlalchemy import MetaData, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateTable

if TYPE_CHECKING:
    from sqlsage.reasoning.sql_generator import SQLGenerator

logger = logging.getLogger(__name__)

def _table_doc(table_name: str, row_count: Optional[int], column_descriptions: Dict[str, str]) -> str:
    lines = [f"Table {table_name}."]
    if row_count is not None:
        lines.append(f"Rows: {row_count}")
    for column, desc in column_descriptions.items():
        lines.append(f"- {column}: {desc}")
    return "\n".join(lines)

def ingest_database_schema(
    generator: "SQLGenerator",
    engine_or_url: Union[Engine, str],
    schema: Optional[str] = None,
    table_descriptions: Optional[Dict[str, Dict[str, str]]] = None,
    include_row_counts: bool = False,
) -> List[str]:
    """Reflect a live database and train one CREATE TABLE statement per table.

    ``table_descriptions`` maps table -> column -> description; each described
    table also gets a documentation entry. Returns the ids of trained items.
    """
    engine = create_engine(engine_or_url) if isinstance(engine_or_url, str) else engine_or_url
    metadata = MetaData()
    metadata.reflect(bind=engine, schema=schema)
    descriptions = {k.lower(): v for k, v in (table_descriptions or {}).items()}

    logger.info(f"=== Starting schema ingestion ({len(metadata.sorted_tables)} tables) ===")
    ids = []
    for table in metadata.sorted_tables:
        ddl = str(CreateTable(table).compile(engine)).strip() + ";"
        ids.append(generator.add_ddl(ddl))
        logger.info(f"  [Table] {table.name}")

        row_count = None
        if include_row_counts:
            try:
                with engine.connect() as conn:
                    row_count = conn.execute(select(func.count()).select_from(table)).scalar()
            except Exception as e:
                logger.warning(f"    [WARN] Could not fetch row count for {table.name}: {e}")

        column_descriptions = descriptions.get(table.name.lower(), {})
        if column_descriptions or row_count is not None:
            ids.append(generator.add_documentation(
                _table_doc(table.name, row_count, column_descriptions), title=table.name
            ))

    logger.info("=== Ingestion complete ===")
    return ids
