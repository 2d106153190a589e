"""Configuration for poolbox boxes.

Configuration can be built in code or loaded from a YAML file:

    work_dir: ./project
    enable_hitl: true
    pools:
      "@shared": /opt/skills
      "@scratch":
        path: /tmp/scratch
        writable: true
"""

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from poolbox.exceptions import PoolboxError


@dataclass
class PoolConfig:
    """Declared pool mount."""
    path: str
    writable: bool = False

    @classmethod
    def from_value(cls, value: "str | dict") -> "PoolConfig":
        """Accept either a bare path or a {path, writable} mapping."""
        if isinstance(value, dict):
            if "path" not in value:
                raise PoolboxError(f"Pool entry missing 'path': {value}")
            return cls(path=str(value["path"]), writable=bool(value.get("writable", False)))
        return cls(path=str(value))

    def to_dict(self) -> dict:
        return {"path": self.path, "writable": self.writable}


@dataclass
class BoxConfig:
    """Limits and defaults shared by every box a manager creates."""
    work_dir: str = "."
    pools: dict[str, PoolConfig] = field(default_factory=dict)
    enable_hitl: bool = False
    read_window: int = 500
    tree_depth: int = 3
    grep_max_chars: int = 8000
    glob_max_results: int = 500
    scan_depth: int = 3
    description_max_chars: int = 150
    dynamic_threshold: int = 8
    search_threshold: int = 80
    search_limit: int = 15
    run_timeout_s: int = 120
    run_output_max_chars: int = 20000
    poll_interval_s: float = 0.03
    audit_log: str | None = None

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["pools"] = {alias: pool.to_dict() for alias, pool in self.pools.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BoxConfig":
        """Deserialize from dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise PoolboxError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        kwargs = {k: v for k, v in data.items() if k != "pools"}
        pools = {
            alias: PoolConfig.from_value(value)
            for alias, value in (data.get("pools") or {}).items()
        }
        return cls(pools=pools, **kwargs)


def load_config(path: Path) -> BoxConfig:
    """Load a BoxConfig from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed BoxConfig

    Raises:
        PoolboxError: If the file is missing, invalid YAML, or not a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise PoolboxError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise PoolboxError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PoolboxError(
            f"Config must be a YAML mapping, got {type(data).__name__}"
        )
    return BoxConfig.from_dict(data)
