"""
Migration engine that copies a relational object store into Neo4j.
"""

from .orchestrator import MigrationOrchestrator, MigrationReport, MigrationState, PhaseResult
from .pipeline import MigrationPipeline

__all__ = [
    "MigrationOrchestrator",
    "MigrationPipeline",
    "MigrationReport",
    "MigrationState",
    "PhaseResult",
]
