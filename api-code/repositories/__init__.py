from .author_registry import AuthorRegistry
from .in_memory import InMemoryAuthorRegistry

__all__ = ["AuthorRegistry", "InMemoryAuthorRegistry"]
