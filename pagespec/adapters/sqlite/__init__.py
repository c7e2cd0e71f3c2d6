from pagespec.adapters.sqlite.driver import SqliteCursor, SqliteExecutor

__all__ = ("SqliteCursor", "SqliteExecutor")
