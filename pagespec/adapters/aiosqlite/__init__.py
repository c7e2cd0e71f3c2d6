from pagespec.adapters.aiosqlite.driver import AiosqliteCursor, AiosqliteExecutor

__all__ = ("AiosqliteCursor", "AiosqliteExecutor")
