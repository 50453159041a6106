# Infrastructure Adapters Package
from .memory_store import InMemoryPracticeRepository
from .yaml_store import load_snapshot, parse_snapshot

__all__ = ["InMemoryPracticeRepository", "load_snapshot", "parse_snapshot"]
