"""Tests for registry persistence and name disambiguation."""

import json
from pathlib import Path

import pytest

from scaffoldcli.errors import ProjectNotFoundError, RegistryIOError
from scaffoldcli.registry.store import NameCounter, RegistryStore
from scaffoldcli.registry.types import Project


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / ".scaffold-cli"


def _store(config_dir: Path) -> RegistryStore:
    return RegistryStore(config_dir / "store.json", config_dir / "cache")


class TestProject:
    def test_local_to_dict_omits_remote(self):
        assert Project(path="/p").to_dict() == {"path": "/p"}

    def test_remote_round_trip(self):
        p = Project(path="/c/widgets", remote="https://github.com/acme/widgets.git", hash="abc1234")
        assert Project.from_dict(p.to_dict()) == p
        assert p.is_remote

    def test_remote_without_hash_rejected(self):
        with pytest.raises(ValueError):
            Project(path="/p", remote="https://github.com/acme/widgets.git")


class TestNameCounter:
    def test_per_base_name(self):
        c = NameCounter()
        assert [c.next("a"), c.next("a"), c.next("b"), c.next("a")] == [1, 2, 1, 3]


class TestLoad:
    def test_first_run_initializes_layout(self, config_dir: Path):
        store = _store(config_dir)
        assert store.load() == {}
        assert (config_dir / "cache").is_dir()
        assert json.loads((config_dir / "store.json").read_text()) == {}

    def test_reads_existing(self, config_dir: Path):
        config_dir.mkdir()
        (config_dir / "store.json").write_text(
            json.dumps({"demo": {"path": "/tmp/demo"}})
        )
        projects = _store(config_dir).load()
        assert projects == {"demo": Project(path="/tmp/demo")}

    def test_missing_store_file_in_existing_dir(self, config_dir: Path):
        config_dir.mkdir()
        assert _store(config_dir).load() == {}
        assert (config_dir / "store.json").is_file()

    def test_corrupt_json(self, config_dir: Path):
        config_dir.mkdir()
        (config_dir / "store.json").write_text("{invalid json")
        with pytest.raises(RegistryIOError):
            _store(config_dir).load()

    def test_not_an_object(self, config_dir: Path):
        config_dir.mkdir()
        (config_dir / "store.json").write_text("[]")
        with pytest.raises(RegistryIOError):
            _store(config_dir).load()


class TestSave:
    def test_round_trip(self, config_dir: Path):
        store = _store(config_dir)
        store.load()
        store.add_entry("b-local", Project(path="/work/b"), NameCounter())
        store.add_entry(
            "a-remote",
            Project(path="/c/a", remote="https://github.com/acme/a.git", hash="f" * 40),
            NameCounter(),
        )
        store.save()

        reloaded = _store(config_dir)
        assert reloaded.load() == {
            "a-remote": Project(path="/c/a", remote="https://github.com/acme/a.git", hash="f" * 40),
            "b-local": Project(path="/work/b"),
        }

    def test_pretty_and_sorted(self, config_dir: Path):
        store = _store(config_dir)
        store.load()
        counter = NameCounter()
        store.add_entry("zeta", Project(path="/z"), counter)
        store.add_entry("alpha", Project(path="/a"), counter)
        store.save()
        text = (config_dir / "store.json").read_text()
        assert text.index('"alpha"') < text.index('"zeta"')
        assert '\n  "alpha": {' in text
        assert not (config_dir / "store.json.tmp").exists()


class TestAddEntry:
    def test_new_name(self, store: RegistryStore):
        assert store.add_entry("demo", Project(path="/a"), NameCounter()) == "demo"
        assert store.get("demo") == Project(path="/a")

    def test_collision_gets_increasing_suffixes(self, store: RegistryStore):
        counter = NameCounter()
        names = [store.add_entry("demo", Project(path=f"/p{i}"), counter) for i in range(4)]
        assert names == ["demo", "demo-1", "demo-2", "demo-3"]
        assert store.get("demo") == Project(path="/p0")

    def test_skips_suffix_taken_in_earlier_run(self, store: RegistryStore):
        store.add_entry("demo", Project(path="/a"), NameCounter())
        store.add_entry("demo-1", Project(path="/b"), NameCounter())
        name = store.add_entry("demo", Project(path="/c"), NameCounter())
        assert name == "demo-2"
        assert store.get("demo-1") == Project(path="/b")

    def test_records_change(self, store: RegistryStore):
        store.add_entry("demo", Project(path="/a"), NameCounter())
        change = store.changes[-1]
        assert (change.kind, change.name) == ("+", "demo")


class TestRemoveEntry:
    def test_remove(self, store: RegistryStore):
        store.add_entry("demo", Project(path="/a"), NameCounter())
        store.remove_entry("demo")
        assert "demo" not in store
        assert store.changes[-1].kind == "-"

    def test_missing(self, store: RegistryStore):
        with pytest.raises(ProjectNotFoundError, match="demo"):
            store.remove_entry("demo")


class TestUpdateEntry:
    def test_update_in_place(self, store: RegistryStore):
        old = Project(path="/c/w", remote="https://h/o/w.git", hash="aaaaaaa")
        store.add_entry("w", old, NameCounter())
        new = Project(path="/c/w", remote="https://h/o/w.git", hash="bbbbbbb")
        store.update_entry("w", new)
        assert store.get("w") == new
        assert len(store) == 1
        assert store.changes[-1].kind == "~"

    def test_missing(self, store: RegistryStore):
        with pytest.raises(ProjectNotFoundError):
            store.update_entry("nope", Project(path="/x"))


class TestPrune:
    def test_drops_missing_paths(self, store: RegistryStore, tmp_path: Path):
        alive = tmp_path / "alive"
        alive.mkdir()
        counter = NameCounter()
        store.add_entry("alive", Project(path=str(alive)), counter)
        store.add_entry("gone", Project(path=str(tmp_path / "gone")), counter)
        assert store.prune() == ["gone"]
        assert list(store) == ["alive"]
