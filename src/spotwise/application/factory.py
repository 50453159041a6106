"""
Repository Factory
Centralizes the logic for selecting the storage adapter.
"""

import logging

from spotwise.application.config import EngineConfig
from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.ports import PracticeRepository
from spotwise.infrastructure.adapters.memory_store import InMemoryPracticeRepository
from spotwise.infrastructure.adapters.yaml_store import load_snapshot

logger = logging.getLogger(__name__)


def get_practice_repository(config: EngineConfig) -> PracticeRepository:
    """
    Returns the PracticeRepository implementation selected by config.
    """
    if config.backend == "yaml":
        if config.snapshot_path is None:
            raise InvalidInput("backend 'yaml' needs a snapshot_path")
        logger.info(f"Backend: YAML snapshot {config.snapshot_path}")
        return load_snapshot(config.snapshot_path)

    logger.info("Backend: in-memory")
    return InMemoryPracticeRepository()
