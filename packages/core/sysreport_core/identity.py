"""Stable client identifier persisted next to the report cache."""

from __future__ import annotations

import uuid
from pathlib import Path

from .logging_setup import get_logger


CLIENT_ID_FILE = "client-id.txt"

logger = get_logger("identity")


def get_or_create_id(storage_dir: Path) -> str:
    """Return the persisted client id, creating it on first run.

    Storage failures never propagate: a fresh token is returned instead and
    the identity will not survive a restart.
    """
    id_path = storage_dir / CLIENT_ID_FILE
    try:
        storage_dir.mkdir(parents=True, exist_ok=True)
        if id_path.exists():
            try:
                existing = id_path.read_text(encoding="utf-8").strip()
            except UnicodeDecodeError:
                logger.warning("client id file %s is not valid UTF-8, regenerating", id_path)
                existing = ""
            if existing:
                return existing

        new_id = str(uuid.uuid4())
        id_path.write_text(new_id, encoding="utf-8")
        logger.info("generated client id %s", new_id, extra={"event": "client_id_created"})
        return new_id
    except (OSError, ValueError) as exc:
        ephemeral = str(uuid.uuid4())
        logger.warning(
            "could not persist client id in %s (%s); using ephemeral id %s",
            storage_dir,
            exc,
            ephemeral,
            extra={"event": "client_id_ephemeral"},
        )
        return ephemeral
