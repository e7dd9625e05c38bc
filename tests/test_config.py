import json
import unittest

import pytest

from primitive_fit.config import SearchConfig, config_to_argv, default_config_path, find_configs_dir


class TestSearchConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = SearchConfig()
        self.assertEqual((cfg.n_random, cfg.max_age, cfg.trials), (1000, 100, 16))

    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            SearchConfig(n_random=0)
        with self.assertRaises(ValueError):
            SearchConfig(max_age=-1)
        with self.assertRaises(ValueError):
            SearchConfig(trials=0)
        SearchConfig(max_age=0)

    def test_trials_per_worker_rounds_up(self) -> None:
        cfg = SearchConfig(trials=16)
        self.assertEqual(cfg.trials_per_worker(1), 16)
        self.assertEqual(cfg.trials_per_worker(3), 6)
        self.assertEqual(cfg.trials_per_worker(16), 1)
        self.assertEqual(cfg.trials_per_worker(40), 1)


def _write(tmp_path, data, name: str = "cfg.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_section_mapping_to_argv(tmp_path) -> None:
    path = _write(
        tmp_path,
        {
            "primitive": {
                "count": 10,
                "n_random": 50,
                "output": ["a.png", "b.svg"],
                "verbose": True,
                "bg": None,
                "no_config": False,
            },
            "other": {"count": 99},
        },
    )
    argv = config_to_argv(path)
    assert argv == ["--count", "10", "--n-random", "50", "--output", "a.png", "--output", "b.svg", "--verbose"]


def test_flat_mapping_with_nested_keys(tmp_path) -> None:
    path = _write(tmp_path, {"max": {"age": 5}, "config": "ignored.json"})
    assert config_to_argv(path) == ["--max-age", "5"]


def test_explicit_args(tmp_path) -> None:
    path = _write(tmp_path, {"args": ["-n", 3, "--mode", "2"]})
    assert config_to_argv(path) == ["-n", "3", "--mode", "2"]


def test_bad_configs(tmp_path) -> None:
    with pytest.raises(ValueError):
        config_to_argv(_write(tmp_path, {"args": ["--config", "x.json"]}))
    with pytest.raises(TypeError):
        config_to_argv(_write(tmp_path, {"args": "-n 3"}))
    with pytest.raises(TypeError):
        config_to_argv(_write(tmp_path, [1, 2, 3]))


def test_yaml_config(tmp_path) -> None:
    pytest.importorskip("yaml")
    path = tmp_path / "cfg.yaml"
    path.write_text("primitive:\n  count: 4\n  mode: 3\n", encoding="utf-8")
    assert config_to_argv(path) == ["--count", "4", "--mode", "3"]


def test_find_configs_dir_stops_at_project_root(tmp_path) -> None:
    proj = tmp_path / "proj"
    (proj / "configs").mkdir(parents=True)
    (proj / "pyproject.toml").write_text("", encoding="utf-8")
    (proj / "sub" / "deeper").mkdir(parents=True)
    assert find_configs_dir(proj / "sub" / "deeper") == (proj / "configs").resolve()

    bare = tmp_path / "bare"
    bare.mkdir()
    (bare / "pyproject.toml").write_text("", encoding="utf-8")
    assert find_configs_dir(bare) is None


def test_default_config_path_follows_cwd(tmp_path, monkeypatch) -> None:
    (tmp_path / "configs").mkdir()
    (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert default_config_path("primitive.json") is None
    cfg = _write(tmp_path / "configs", {"primitive": {"count": 3}}, "primitive.json")
    assert default_config_path("primitive.json") == cfg.resolve()
    assert config_to_argv(default_config_path("primitive.json")) == ["--count", "3"]


def test_reserved_keys_and_falsy_values(tmp_path) -> None:
    path = _write(tmp_path, {"config": "x.json", "no_config": True, "count": 0, "verbose": False, "bg": None})
    assert config_to_argv(path) == ["--count", "0"]
