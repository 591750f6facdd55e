"""Short names for Abacus project and service type numbers (aliases.json)."""

import json
import os

from errors import ConfigError
from patterns import project_matches

ALIAS_KINDS = {
    "project": "projects",
    "p": "projects",
    "service-type": "serviceTypes",
    "st": "serviceTypes",
    "s": "serviceTypes",
}


def load_aliases(path: str) -> dict:
    """Load aliases, accepting the legacy 'leistungsarten' key."""
    if not os.path.exists(path):
        return {"projects": {}, "serviceTypes": {}}
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError("Invalid aliases file. Expected a JSON object", path=path)
    for section in ("projects", "serviceTypes", "leistungsarten"):
        if data.get(section) is not None and not isinstance(data[section], dict):
            raise ConfigError(f"Invalid aliases file. '{section}' must be an object", path=path)
    return {
        "projects": dict(data.get("projects") or {}),
        "serviceTypes": dict(data.get("serviceTypes") or data.get("leistungsarten") or {}),
    }


def save_aliases(path: str, aliases: dict) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(aliases, f, indent=2, ensure_ascii=False)
        f.write("\n")


def resolve_project(aliases: dict, value: str) -> str:
    return aliases["projects"].get(value, value)


def resolve_service_type(aliases: dict, value: str) -> str:
    return aliases["serviceTypes"].get(value, value)


def _reverse(mapping: dict, label: str) -> str | None:
    for alias, ident in mapping.items():
        if project_matches(label, ident):
            return alias
    return None


def reverse_project(aliases: dict, label: str) -> str | None:
    """Alias whose project number appears in a grid label, if any."""
    return _reverse(aliases["projects"], label)


def reverse_service_type(aliases: dict, label: str) -> str | None:
    return _reverse(aliases["serviceTypes"], label)


def alias_section(kind: str) -> str:
    try:
        return ALIAS_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown alias type '{kind}'. Use 'project' or 'service-type'")


def add_alias(aliases: dict, kind: str, alias: str, ident: str) -> None:
    aliases[alias_section(kind)][alias] = ident


def remove_alias(aliases: dict, kind: str, alias: str) -> bool:
    return aliases[alias_section(kind)].pop(alias, None) is not None
