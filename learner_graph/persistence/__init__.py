"""
Persistence Module - Snapshot codec and a file-backed profile store.

The store lives in learner_graph.persistence.profile_store and is imported
from there directly; it depends on the engine, which depends on the codec.
"""

from learner_graph.persistence.snapshot import (
    ProfileSnapshot,
    dump_profile,
    load_snapshot,
    restore_profile,
)

__all__ = [
    "ProfileSnapshot",
    "dump_profile",
    "load_snapshot",
    "restore_profile",
]
