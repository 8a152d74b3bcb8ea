# SPDX-License-Identifier: AGPL-3.0-only
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
try:
    import tomllib
except ImportError:
    import tomli as tomllib

# Example capture-website.toml
#
#   [flags]
#   width = 1440
#   scale-factor = 1
#   hide-elements = [".cookie-banner"]
#   header = ["x-powered-by: capture-website-cli"]


class Config:
    def __init__(self, data: Dict[str, Any], path: Path):
        self.data = data
        self.path = path
        self.root = path.parent

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load configuration from a TOML file."""
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"No config file found at {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse {path}: {e}")

        return cls(data, path)

    @property
    def flags(self) -> Dict[str, Any]:
        return self.data.get("flags", {})

    def flag_defaults(self, known_dests: Iterable[str]) -> Dict[str, Any]:
        """Map `[flags]` keys (long flag names) onto parser destinations."""
        known = set(known_dests)
        defaults = {}
        for key, value in self.flags.items():
            name = key.lstrip("-")
            dest = name.replace("-", "_")
            if name.startswith("no-") and dest[3:] in known and isinstance(value, bool):
                dest, value = dest[3:], not value
            if dest not in known:
                raise ValueError(f"Unknown flag in {self.path}: {key}")
            defaults[dest] = value
        return defaults


def load_flag_defaults(path: Optional[str], known_dests: Iterable[str]) -> Dict[str, Any]:
    if not path:
        return {}
    return Config.load(Path(path)).flag_defaults(known_dests)
