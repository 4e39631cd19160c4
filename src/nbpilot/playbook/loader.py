"""Playbook loader — load playbooks from JSON files.

The NotebookLM flow ships with the package under ``builtin/``. A
different file can be selected with ``automation.playbook_path``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from nbpilot.playbook.models import Playbook

logger = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).resolve().parent / "builtin"
DEFAULT_PLAYBOOK_FILE = BUILTIN_DIR / "notebooklm_audio_overview.json"


def load_playbook_from_file(path: Path) -> Playbook:
    """Load a single playbook from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        pydantic.ValidationError: If the data does not conform to the schema.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    return Playbook(**data)


def load_playbooks_from_dir(directory: Path | str) -> list[Playbook]:
    """Load all playbook JSON files from a directory.

    Files that fail validation are logged and skipped rather than
    aborting the entire load.
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        logger.warning("Playbook directory does not exist: %s", dir_path)
        return []

    playbooks: list[Playbook] = []
    for json_file in sorted(dir_path.glob("*.json")):
        try:
            pb = load_playbook_from_file(json_file)
            playbooks.append(pb)
            logger.info("Loaded playbook %s from %s", pb.playbook_id, json_file.name)
        except Exception:
            logger.exception("Failed to load playbook from %s", json_file)
    return playbooks


def load_configured_playbooks(playbook_path: str = "") -> list[Playbook]:
    """Load the playbooks selected by configuration.

    An empty *playbook_path* means the built-in set. A path to a file
    loads that one playbook; a directory loads every ``*.json`` in it.
    """
    if not playbook_path:
        return load_playbooks_from_dir(BUILTIN_DIR)
    path = Path(playbook_path)
    if path.is_dir():
        return load_playbooks_from_dir(path)
    return [load_playbook_from_file(path)]
