"""
Default exercise catalog loader.

The built-in catalog lives in the bundled ``src/iron_log/exercises.yaml``.
Users can add entries by placing an ``exercises.yaml`` with the same shape
in their data directory; entries whose name already exists in the bundled
file override its muscle group / equipment.

Usage:
    from iron_log.core.catalog import load_default_catalog
    entries = load_default_catalog()    # list[CatalogEntry]
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .engine.config_loader import _load_yaml_file, get_bundled_yaml_path, get_data_dir
from .errors import ValidationError
from .models import EQUIPMENT_LABELS, MUSCLE_GROUP_LABELS, Exercise

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """One default exercise definition."""

    name: str
    muscle_group: str
    equipment: str

    def to_exercise(self) -> Exercise:
        return Exercise(
            name=self.name,
            muscle_group=self.muscle_group,  # type: ignore[arg-type]
            equipment=self.equipment,  # type: ignore[arg-type]
            is_custom=False,
        )


def entry_from_dict(d: dict) -> CatalogEntry:
    """
    Build a CatalogEntry from a YAML mapping.

    Raises:
        ValidationError: If a field is missing or holds an unknown value
    """
    try:
        name = str(d["name"]).strip()
        muscle_group = str(d["muscle_group"])
        equipment = str(d["equipment"])
    except KeyError as exc:
        raise ValidationError(f"catalog entry missing field {exc}") from exc
    if not name:
        raise ValidationError("catalog entry has an empty name")
    if muscle_group not in MUSCLE_GROUP_LABELS:
        raise ValidationError(f"{name}: unknown muscle_group {muscle_group!r}")
    if equipment not in EQUIPMENT_LABELS:
        raise ValidationError(f"{name}: unknown equipment {equipment!r}")
    return CatalogEntry(name=name, muscle_group=muscle_group, equipment=equipment)


def _entries_from_file(path: Path) -> list[CatalogEntry]:
    raw = _load_yaml_file(path)
    entries: list[CatalogEntry] = []
    for item in raw.get("exercises") or []:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed catalog item in %s: %r", path, item)
            continue
        try:
            entries.append(entry_from_dict(item))
        except ValidationError as exc:
            logger.warning("Skipping catalog entry in %s: %s", path, exc)
    return entries


def load_default_catalog(data_dir: Path | None = None) -> list[CatalogEntry]:
    """
    Return the bundled catalog merged with the user's catalog additions.

    Order is bundled order, followed by user-only entries.
    """
    merged: dict[str, CatalogEntry] = {}

    bundled = get_bundled_yaml_path("exercises.yaml")
    if bundled is not None:
        for entry in _entries_from_file(bundled):
            merged[entry.name] = entry
    else:
        logger.warning("Bundled exercises.yaml not found; default catalog is empty")

    user = (data_dir or get_data_dir()) / "exercises.yaml"
    if user.exists():
        for entry in _entries_from_file(user):
            merged[entry.name] = entry

    return list(merged.values())
