"""
Static battle data database.

Loads skill, enemy and item definitions from JSON files and validates them
against JSON schemas. Layout under the data root:

    database/skills/*.json
    database/enemies/*.json
    database/items/*.json
    schemas/*.schema.json     (optional, bundled schemas are used otherwise)

A file may hold a single record or a list of records; every record needs an
"id". The database only stores validated dicts. Turning them into battle
objects is the job of rpg_framework.battle.registry.
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from rpg_engine.core.errors import DataValidationError

BUNDLED_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

CATEGORIES = {
    "skills": "skill.schema.json",
    "enemies": "enemy.schema.json",
    "items": "item.schema.json",
}


class Database:
    """
    Central storage for static battle data.

    Args:
        data_path: Root directory holding database/ and optionally schemas/
        strict: Raise DataValidationError on the first bad file instead of
            logging it and skipping
    """

    def __init__(self, data_path: Path | str, strict: bool = False):
        self._data_path = Path(data_path)
        self._strict = strict
        self._schemas: dict[str, Any] = {}

        self.skills: dict[str, dict[str, Any]] = {}
        self.enemies: dict[str, dict[str, Any]] = {}
        self.items: dict[str, dict[str, Any]] = {}

        self.logger = logging.getLogger(__name__)

    def load_all(self) -> None:
        """Load every category from disk."""
        self._load_schemas()

        self.skills = self._load_category("skills")
        self.enemies = self._load_category("enemies")
        self.items = self._load_category("items")

        self.logger.info(
            "Loaded %d skills, %d enemies, %d items.",
            len(self.skills), len(self.enemies), len(self.items),
        )

    def _load_schemas(self) -> None:
        """Load bundled schemas, then let the data root override them."""
        for schema_dir in (BUNDLED_SCHEMA_DIR, self._data_path / "schemas"):
            if not schema_dir.exists():
                continue
            for schema_file in schema_dir.glob("*.schema.json"):
                try:
                    with open(schema_file, 'r', encoding='utf-8') as f:
                        self._schemas[schema_file.name] = json.load(f)
                except (OSError, json.JSONDecodeError) as e:
                    self._fail(f"Failed to load schema: {e}", schema_file)

    def _load_category(self, folder: str) -> dict[str, dict[str, Any]]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, dict[str, Any]] = {}

        if not category_dir.exists():
            self.logger.warning("Data directory not found: %s", category_dir)
            return data_store

        schema = self._schemas.get(CATEGORIES[folder])
        if schema is None:
            self.logger.warning("No schema found for %s", folder)

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self._fail(f"Failed to load: {e}", file_path)
                continue

            records = data if isinstance(data, list) else [data]
            for record in records:
                try:
                    if schema:
                        jsonschema.validate(instance=record, schema=schema)
                    if not isinstance(record, dict) or 'id' not in record:
                        raise DataValidationError("record has no id", str(file_path))
                except jsonschema.ValidationError as e:
                    self._fail(f"Validation error: {e.message}", file_path)
                    continue
                except DataValidationError as e:
                    self._fail(str(e), None)
                    continue

                if record['id'] in data_store:
                    self.logger.warning("Duplicate %s id '%s' in %s", folder, record['id'], file_path)
                data_store[record['id']] = record

        return data_store

    def _fail(self, message: str, source: Path | None) -> None:
        if self._strict:
            raise DataValidationError(message, str(source) if source else None)
        self.logger.error("%s%s", f"{source}: " if source else "", message)

    def get_skill(self, skill_id: str) -> dict[str, Any] | None:
        return self.skills.get(skill_id)

    def get_enemy(self, enemy_id: str) -> dict[str, Any] | None:
        return self.enemies.get(enemy_id)

    def get_item(self, item_id: str) -> dict[str, Any] | None:
        return self.items.get(item_id)
