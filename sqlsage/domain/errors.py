# domain/errors.py

class SQLSageError(Exception):
    pass

class ConfigurationError(SQLSageError):
    """Bad input to train/export/import or a missing prerequisite such as DDL or a schema."""

class TrainingDataImportError(ConfigurationError):
    pass

class ProviderError(SQLSageError):
    """The language-model or embedding provider failed or answered with an unexpected payload."""

class StoreNotReadyError(SQLSageError):
    pass
