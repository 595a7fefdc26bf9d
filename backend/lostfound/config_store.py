from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    return loaded if isinstance(loaded, dict) else {}


def load_retention_policies(path: Path) -> list[dict[str, Any]]:
    """Read the ``policies`` list from a retention policy YAML file.

    Entries that are not mappings are dropped; field validation happens when
    the entries are turned into DataRetentionPolicy models.
    """
    policies = load_yaml(path).get("policies") or []
    if not isinstance(policies, list):
        return []
    return [p for p in policies if isinstance(p, dict)]
