"""ProjectManifest (orb.json) 单元测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from orb.core.exceptions import ConfigError, ValidationError
from orb.core.project import ProjectManifest


@pytest.fixture()
def project(tmp_path: Path) -> ProjectManifest:
    d = tmp_path / "myapp"
    d.mkdir()
    return ProjectManifest(d / "orb.json")


def _read(p: ProjectManifest) -> dict:
    return json.loads(p.path.read_text(encoding="utf-8"))


class TestDependencies:
    def test_set_creates_skeleton(self, project: ProjectManifest) -> None:
        project.set_dependency("colors", "1.2.0")
        data = _read(project)
        assert data["name"] == "myapp"
        assert data["version"] == "1.0.0"
        assert data["dependencies"] == {"colors": "1.2.0"}
        assert data["devDependencies"] == {}

    def test_set_overwrites(self, project: ProjectManifest) -> None:
        project.set_dependency("colors", "1.0")
        project.set_dependency("colors", "2.0")
        assert project.dependencies() == {"colors": "2.0"}

    def test_set_preserves_other_keys(self, project: ProjectManifest) -> None:
        project.init("demo", "0.3.0")
        project.set_dependency("colors", "1.0")
        data = _read(project)
        assert data["name"] == "demo"
        assert data["license"] == "ISC"

    def test_remove(self, project: ProjectManifest) -> None:
        project.set_dependency("colors", "1.0")
        project.set_dependency("utils", "2.0")
        assert project.remove_dependency("colors") is True
        assert project.dependencies() == {"utils": "2.0"}

    def test_remove_missing_does_not_write(self, project: ProjectManifest) -> None:
        assert project.remove_dependency("colors") is False
        assert not project.exists

        project.set_dependency("utils", "2.0")
        before = project.path.read_bytes()
        assert project.remove_dependency("colors") is False
        assert project.path.read_bytes() == before

    def test_invalid_json(self, project: ProjectManifest) -> None:
        project.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            project.dependencies()


class TestInit:
    def test_scaffold(self, project: ProjectManifest) -> None:
        data = project.init("demo")
        assert data == _read(project)
        assert data["name"] == "demo"
        assert data["version"] == "1.0.0"
        assert data["main"] == "main.sh"
        assert data["dependencies"] == {}
        assert data["keywords"] == []

    def test_refuses_existing(self, project: ProjectManifest) -> None:
        project.init("demo")
        with pytest.raises(ValidationError, match="already exists"):
            project.init("other")
        assert _read(project)["name"] == "demo"
