from .mongo import get_database, get_mongo_client

__all__ = ["get_database", "get_mongo_client"]
