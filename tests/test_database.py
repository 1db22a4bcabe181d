import pytest
from sqlalchemy import create_engine

from sqlsage.infra.database import SQLRunner
from sqlsage.pipelines.ingest_schema import ingest_database_schema

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    runner = SQLRunner(engine)
    runner.run("CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)")
    runner.run(
        "CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id), total NUMERIC(10, 2))"
    )
    runner.run("INSERT INTO users (id, name) VALUES (1, 'ada'), (2, 'grace')")
    yield engine
    engine.dispose()

def test_run_returns_rows_as_dicts(engine):
    runner = SQLRunner(engine)
    assert runner.dialect == "SQLite"
    assert runner("SELECT id, name FROM users ORDER BY id") == [
        {"id": 1, "name": "ada"},
        {"id": 2, "name": "grace"},
    ]

def test_writes_are_committed(engine):
    runner = SQLRunner(engine)
    assert runner.run("INSERT INTO users (id, name) VALUES (3, 'linus')") == []
    assert runner.run("SELECT COUNT(*) AS n FROM users") == [{"n": 3}]

def test_dry_run(engine):
    runner = SQLRunner(engine)
    assert runner.dry_run("SELECT * FROM users") == (True, None)
    ok, error = runner.dry_run("SELECT * FROM missing_table")
    assert not ok
    assert "missing_table" in error

def test_runner_accepts_url(tmp_path):
    runner = SQLRunner(f"sqlite:///{tmp_path / 'empty.db'}")
    assert runner.run("SELECT 1 AS one") == [{"one": 1}]

def test_connect_to_database_sets_dialect(generator, engine):
    generator.connect_to_database(engine)
    assert generator.dialect == "SQLite"
    assert generator.run_sql("SELECT name FROM users WHERE id = 2") == [{"name": "grace"}]

def test_ingest_database_schema(generator, store, engine):
    ids = ingest_database_schema(
        generator,
        engine,
        table_descriptions={"Users": {"name": "Display name"}},
        include_row_counts=True,
    )

    data = store.get_training_data()
    assert len(ids) == 4
    assert sorted(d.table_name for d in data.ddl) == ["orders", "users"]
    assert all(d.ddl.startswith("CREATE TABLE") and d.ddl.endswith(";") for d in data.ddl)

    docs = {d.title: d.documentation for d in data.documentation}
    assert docs["users"] == "Table users.\nRows: 2\n- name: Display name"
    assert docs["orders"] == "Table orders.\nRows: 0"

def test_ingested_ddl_feeds_schema_info(generator, engine):
    ingest_database_schema(generator, engine)
    schema = generator.get_schema_info()
    assert sorted(t.name for t in schema.tables) == ["orders", "users"]

def test_train_from_connected_database(generator, store, engine):
    from sqlsage.domain.errors import ConfigurationError

    with pytest.raises(ConfigurationError):
        generator.train_from_database()

    generator.connect_to_database(engine)
    ids = generator.train_from_database()
    assert len(ids) == 2
    assert sorted(d.table_name for d in store.get_training_data().ddl) == ["orders", "users"]

def test_ask_does_not_run_sql_that_fails_validation(generator, llm, engine, caplog):
    runner = generator.connect_to_database(engine)
    llm.responses.append("SELECT * FROM missing_table;")
    with caplog.at_level("WARNING"):
        result = generator.ask("broken")
    assert result.sql == "SELECT * FROM missing_table;"
    assert result.results is None
    assert "failed validation" in caplog.text
    assert runner.run("SELECT COUNT(*) AS n FROM users") == [{"n": 2}]

def test_ask_runs_valid_sql_against_database(generator, llm, store, engine):
    generator.connect_to_database(engine)
    llm.responses.append("SELECT name FROM users WHERE id = 1;")
    assert generator.ask("first user").results == [{"name": "ada"}]
    assert store.get_statistics().question_sql_count == 1
