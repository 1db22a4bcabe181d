# infra/database.py
import logging
from typing import Any, Dict, List, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

DIALECT_NAMES = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "mariadb": "MySQL",
    "sqlite": "SQLite",
    "mssql": "Microsoft SQL Server",
    "oracle": "Oracle",
}

class SQLRunner:
    """Runs generated SQL against a live database; usable directly as ``run_sql``."""

    def __init__(self, engine_or_url: Union[Engine, str]):
        self.engine = create_engine(engine_or_url) if isinstance(engine_or_url, str) else engine_or_url

    @property
    def dialect(self) -> str:
        name = self.engine.dialect.name
        return DIALECT_NAMES.get(name, name)

    def __call__(self, sql: str) -> List[Dict[str, Any]]:
        return self.run(sql)

    def run(self, sql: str) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(text(sql))
            if not result.returns_rows:
                conn.commit()
                return []
            return [dict(row._mapping) for row in result]

    def dry_run(self, sql: str) -> tuple[bool, str | None]:
        try:
            with self.engine.connect() as conn:
                # sqlite spells the plan-only form EXPLAIN QUERY PLAN
                prefix = "EXPLAIN QUERY PLAN" if self.engine.dialect.name == "sqlite" else "EXPLAIN"
                conn.execute(text(f"{prefix} {sql}"))
            return True, None
        except Exception as e:
            logger.warning(f"Dry run failed: {e}")
            return False, str(e)
