"""Tests for project and service type aliases."""

import json

import pytest

from aliases import (
    add_alias,
    load_aliases,
    remove_alias,
    resolve_project,
    resolve_service_type,
    reverse_project,
    reverse_service_type,
    save_aliases,
)
from errors import ConfigError

ALIASES = {
    "projects": {"da_dev": "71100000001", "short": "711"},
    "serviceTypes": {"dev": "1435"},
}


class TestResolve:

    def test_known_alias(self):
        assert resolve_project(ALIASES, "da_dev") == "71100000001"
        assert resolve_service_type(ALIASES, "dev") == "1435"

    def test_unknown_passes_through(self):
        assert resolve_project(ALIASES, "99999") == "99999"

    def test_reverse_matches_whole_number(self):
        assert reverse_project(ALIASES, "71100000001 – Internal") == "da_dev"
        assert reverse_project(ALIASES, "711 – Legacy") == "short"
        assert reverse_project(ALIASES, "42 – Other") is None

    def test_reverse_service_type(self):
        assert reverse_service_type(ALIASES, "1435 Development") == "dev"


class TestEdit:

    def test_add_and_remove(self):
        aliases = {"projects": {}, "serviceTypes": {}}
        add_alias(aliases, "project", "x", "123")
        add_alias(aliases, "st", "y", "1435")
        assert aliases == {"projects": {"x": "123"}, "serviceTypes": {"y": "1435"}}
        assert remove_alias(aliases, "project", "x")
        assert not remove_alias(aliases, "project", "x")

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown alias type"):
            add_alias({"projects": {}, "serviceTypes": {}}, "customer", "x", "1")


class TestFile:

    def test_missing_file_is_empty(self, tmp_path):
        assert load_aliases(str(tmp_path / "aliases.json")) == {"projects": {}, "serviceTypes": {}}

    def test_save_and_load(self, tmp_path):
        path = str(tmp_path / "sub" / "aliases.json")
        save_aliases(path, ALIASES)
        assert load_aliases(path) == ALIASES

    def test_legacy_key(self, tmp_path):
        path = tmp_path / "aliases.json"
        path.write_text(json.dumps({"projects": {}, "leistungsarten": {"dev": "1435"}}), encoding="utf-8")
        assert load_aliases(str(path))["serviceTypes"] == {"dev": "1435"}

    @pytest.mark.parametrize("content", [[], {"projects": []}, {"serviceTypes": "1435"}])
    def test_wrong_shape(self, tmp_path, content):
        path = tmp_path / "aliases.json"
        path.write_text(json.dumps(content), encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid aliases file"):
            load_aliases(str(path))
