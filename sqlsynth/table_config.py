from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Sequence

from sqlsynth.errors import TableConfigError
from sqlsynth.rows import TableSchema
from sqlsynth.statements import create, drop

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableDefinition:
    """
    One table loaded from config: its name, ordered column definitions and the
    if-not-exists flag used when rendering CREATE TABLE.
    """
    name: str
    columns: dict[str, Any] = field(default_factory=dict)
    if_not_exists: bool = False

    def create_sql(self) -> str:
        return create(self.name, self.columns, if_not_exists=self.if_not_exists)

    def drop_sql(self) -> str:
        return drop(self.name)

    def schema(self) -> TableSchema:
        return TableSchema.from_columns(self.columns)


class TableConfigLoader:
    """
    Load table definitions from JSON config(s).

    Supported config source shapes:
    - dict with a single table config (contains "table_name")
    - dict with "tables": [...]
    - list of table configs

    Columns are either a mapping {name: definition} or a list of
    {"name": ..., <definition fields>} entries; both keep declaration order.
    """

    def load(
        self,
        *,
        table: str | None = None,
        config_dir: str | Path | None = None,
        config_files: Sequence[str | Path] | None = None,
        config_payloads: Sequence[dict | list] | None = None,
    ) -> list[TableDefinition]:
        """
        Args:
            table:
                Optional table filter; only the matching definition is returned.
            config_dir:
                Directory containing *.json table config files.
            config_files:
                Explicit list of JSON config files.
            config_payloads:
                In-memory config payload(s) already parsed from JSON.
        """
        definitions: list[TableDefinition] = []
        seen: set[str] = set()
        sources = self._iter_sources(config_dir, config_files, config_payloads)
        for source_name, cfg in sources:
            for t in self._normalise_tables_config(cfg, source_name):
                name = t.get("table_name")
                if not name:
                    raise TableConfigError(f"Config source '{source_name}' has entry missing 'table_name'.")
                if table and name != table:
                    continue
                if name in seen:
                    raise TableConfigError(f"Table '{name}' is defined more than once (last seen in '{source_name}').")
                seen.add(name)

                definition = TableDefinition(
                    name=name,
                    columns=self._normalise_columns(t.get("columns"), name),
                    if_not_exists=bool(t.get("if_not_exists", False)),
                )
                definitions.append(definition)
                logger.info("Loaded table definition %s (%d columns)", name, len(definition.columns))

        if table and not definitions:
            raise TableConfigError(f"Target table '{table}' was not found in provided config sources.")

        return definitions

    def _iter_sources(
        self,
        config_dir: str | Path | None,
        config_files: Sequence[str | Path] | None,
        config_payloads: Sequence[dict | list] | None,
    ) -> Iterator[tuple[str, dict | list]]:
        """
        Yield (source name, parsed config): directory files first, then explicit
        files, then in-memory payloads.
        """
        paths = self._config_paths(config_dir, config_files)
        if not paths and not config_payloads:
            raise TableConfigError(
                "At least one config source is required. Provide config_dir, config_files, or config_payloads."
            )
        logger.debug("Reading %d table config file(s)", len(paths))

        for path in paths:
            try:
                cfg = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise TableConfigError(f"Failed to parse JSON config: {path}") from exc
            yield str(path), cfg

        for i, payload in enumerate(config_payloads or ()):
            yield f"<payload:{i}>", payload

    @staticmethod
    def _config_paths(config_dir: str | Path | None, config_files: Sequence[str | Path] | None) -> list[Path]:
        paths: list[Path] = []
        if config_dir is not None:
            directory = Path(config_dir)
            if not directory.is_dir():
                raise TableConfigError(f"config_dir is not a directory: {directory}")
            paths.extend(sorted(directory.glob("*.json")))

        for raw_path in config_files or ():
            path = Path(raw_path)
            if not path.is_file():
                raise TableConfigError(f"Config file not found: {path}")
            paths.append(path)
        return paths

    def _normalise_tables_config(self, cfg: dict | list, source_name: str) -> list[dict]:
        if cfg is None:
            raise TableConfigError(f"No table config loaded from '{source_name}'.")

        if isinstance(cfg, list):
            return cfg

        if isinstance(cfg, dict) and "tables" in cfg and isinstance(cfg["tables"], list):
            return cfg["tables"]

        if isinstance(cfg, dict) and "table_name" in cfg:
            return [cfg]

        raise TableConfigError(f"Unsupported table config structure in '{source_name}'.")

    def _normalise_columns(self, columns_cfg: dict | list | None, table: str) -> dict[str, Any]:
        if not columns_cfg:
            raise TableConfigError(f"Table '{table}' has no columns.")

        if isinstance(columns_cfg, dict):
            return dict(columns_cfg)

        if not isinstance(columns_cfg, list):
            raise TableConfigError(f"Unsupported columns structure for table '{table}'.")

        columns: dict[str, Any] = {}
        for c in columns_cfg:
            if not isinstance(c, dict) or not c.get("name"):
                raise TableConfigError(f"Table '{table}' has a column entry missing 'name'.")
            spec = {k: v for k, v in c.items() if k != "name"}
            # A lone "type" collapses to the bare type string.
            columns[c["name"]] = spec["type"] if list(spec) == ["type"] else spec
        return columns


def load_table_definitions(**kwargs) -> list[TableDefinition]:
    """
    Convenience wrapper:

        load_table_definitions(config_dir="tables")
    """
    return TableConfigLoader().load(**kwargs)
