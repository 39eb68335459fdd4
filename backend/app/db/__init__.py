from app.db.sqlite import get_db, init_sqlite

__all__ = ["get_db", "init_sqlite"]
