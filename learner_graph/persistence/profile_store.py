"""
File-backed Profile Store.

Host-side convenience for persisting one snapshot per learner:

    <profile_dir>/knowledge_graph_<user_id>.json

The engine itself does no I/O; load before calling into it and save after.
Reads go through the recovering loader, so a corrupted file produces an empty
profile instead of an error.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from loguru import logger

from learner_graph.learning.engine import EngineConfig, KnowledgeGraphEngine

FILE_PREFIX = "knowledge_graph_"
FILE_SUFFIX = ".json"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.@-]")


class ProfileStore:
    """
    Directory of learner snapshots.

    Handles:
    - Loading an engine for a learner (fresh if nothing stored)
    - Atomic saves via a temp file and rename
    - Listing and deleting stored learners
    """

    DEFAULT_DIR = Path.home() / ".learner_graph" / "profiles"

    def __init__(self, profile_dir: Path | None = None, config: EngineConfig | None = None):
        """
        Initialize the store.

        Args:
            profile_dir: Snapshot directory (defaults to ~/.learner_graph/profiles)
            config: Engine config applied to loaded engines
        """
        self.profile_dir = Path(profile_dir or self.DEFAULT_DIR).expanduser()
        self.profile_dir.mkdir(parents=True, exist_ok=True)
        self.config = config

    def path_for(self, user_id: str) -> Path:
        """Snapshot path for a learner; unsafe filename characters become '_'."""
        safe_id = _UNSAFE_CHARS.sub("_", user_id)
        return self.profile_dir / f"{FILE_PREFIX}{safe_id}{FILE_SUFFIX}"

    def exists(self, user_id: str) -> bool:
        return self.path_for(user_id).is_file()

    def load(self, user_id: str) -> KnowledgeGraphEngine:
        """
        Load the learner's engine.

        Returns:
            Engine around the stored profile, or around a fresh profile if
            nothing is stored or the snapshot is unusable
        """
        path = self.path_for(user_id)
        if not path.is_file():
            logger.info(f"No stored profile for {user_id}; starting fresh")
            return KnowledgeGraphEngine(user_id, config=self.config)

        data = path.read_text(encoding="utf-8")
        engine = KnowledgeGraphEngine.from_snapshot(data, user_id, config=self.config)
        logger.info(
            f"Loaded profile for {user_id} ({len(engine.profile.knowledge_nodes)} concepts)"
        )
        return engine

    def save(self, engine: KnowledgeGraphEngine) -> Path:
        """
        Write the engine's snapshot atomically.

        Returns:
            Path written
        """
        path = self.path_for(engine.user_id)
        data = engine.serialize()

        fd, tmp_name = tempfile.mkstemp(dir=self.profile_dir, prefix=".tmp_", suffix=FILE_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
            Path(tmp_name).replace(path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Saved profile for {engine.user_id} to {path}")
        return path

    def delete(self, user_id: str) -> bool:
        """
        Remove a learner's stored profile.

        Returns:
            True if a file was removed
        """
        path = self.path_for(user_id)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted stored profile for {user_id}")
        return True

    def list_learners(self) -> list[str]:
        """Stored learner ids (as encoded in filenames), sorted."""
        return sorted(
            p.name[len(FILE_PREFIX) : -len(FILE_SUFFIX)]
            for p in self.profile_dir.glob(f"{FILE_PREFIX}*{FILE_SUFFIX}")
        )
