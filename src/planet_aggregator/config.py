"""Planet configuration: feed metadata, fetch settings and contributors.

The file is YAML. String values may reference the environment as ``${VAR}``
or ``${VAR:-fallback}``, which keeps tokens in private feed URLs out of the
file itself.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")

# Overrides the default config location
CONFIG_ENV_VAR = "PLANET_CONFIG"

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class ContributorConfig:
    """A contributor as listed in the config file."""

    name: str
    feed: str
    url: str = ""


def get_project_root() -> Path:
    """The directory holding pyproject.toml and ``config/``."""
    return _PROJECT_ROOT


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR) or _PROJECT_ROOT / "config" / "planet.yaml")


def _substitute(match: re.Match) -> str:
    value = os.environ.get(match.group("name"))
    if value is not None:
        return value
    fallback = match.group("fallback")
    return match.group(0) if fallback is None else fallback


def expand_env(value: Any) -> Any:
    """Substitute environment references in every string of a YAML tree.

    Unset variables without a fallback are kept verbatim so that the
    problem shows up in the value rather than as an empty string.
    """
    if isinstance(value, str):
        return _ENV_REF.sub(_substitute, value)
    if isinstance(value, list):
        return [expand_env(v) for v in value]
    if isinstance(value, dict):
        return {key: expand_env(v) for key, v in value.items()}
    return value


def _candidates(path: Path) -> list[Path]:
    # planet.yaml, then the planet.example.yaml shipped next to it
    return [path, path.with_name(f"{path.stem}.example{path.suffix or '.yaml'}")]


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load the YAML config.

    Args:
        path: Config file. Defaults to ``$PLANET_CONFIG``, else
            config/planet.yaml in the project root. When the file is absent,
            its ``.example`` sibling is used instead.

    Returns:
        The parsed config with environment references expanded.

    Raises:
        FileNotFoundError: If neither the file nor its example exists.
    """
    wanted = Path(path) if path else default_config_path()
    found = next((p for p in _candidates(wanted) if p.is_file()), None)
    if found is None:
        raise FileNotFoundError(
            f"No config at {wanted}. "
            f"Create it from config/planet.example.yaml and list your contributors."
        )
    if found != wanted:
        logger.info("%s not found, using %s", wanted, found)

    raw = yaml.safe_load(found.read_text(encoding="utf-8"))
    return expand_env(raw or {})


def load_contributors(cfg: dict[str, Any]) -> list[ContributorConfig]:
    """Read the contributor list from a loaded config.

    Raises:
        ValueError: If an entry has no name or no feed URL.
    """
    contributors = []
    for i, entry in enumerate(cfg.get("contributors") or []):
        name = (entry or {}).get("name")
        feed = (entry or {}).get("feed")
        if not name or not feed:
            raise ValueError(f"Contributor #{i + 1} needs both 'name' and 'feed'")
        contributors.append(ContributorConfig(name=name, feed=feed, url=entry.get("url") or ""))
    return contributors
