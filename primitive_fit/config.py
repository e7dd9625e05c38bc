"""Search budgets and the config-file layer of `primitive-fit`.

A config file holds default CLI values. `configs/primitive.json` is picked up
automatically when the CLI runs inside a checkout; `--config PATH` points at
any other file and `--no-config` skips both. File values are turned into CLI
tokens placed before the real command line, so explicit flags always win.

Accepted layouts (JSON, or YAML with the `yaml` extra):

- `{"primitive": {"count": 200, "mode": 3, "output": ["out.png", "out.svg"]}}`
- `{"count": 200, "max": {"age": 50}}` (nested keys joined: `--max-age 50`)
- `{"args": ["-n", "200", "-m", "3"]}` (tokens used verbatim)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

DEFAULT_CONFIG_NAME: str = "primitive.json"
CONFIG_SECTIONS: tuple[str, ...] = ("primitive",)


@dataclass(frozen=True)
class SearchConfig:
    """Budgets for one shape search.

    Attributes:
        n_random: Random candidates sampled per trial.
        max_age: Consecutive non-improving moves before hill climbing stops.
        trials: Hill-climb trials per shape, split across workers.
    """

    n_random: int = 1000
    max_age: int = 100
    trials: int = 16

    def __post_init__(self) -> None:
        if self.n_random < 1:
            raise ValueError(f"n_random must be >= 1, got {self.n_random}")
        if self.max_age < 0:
            raise ValueError(f"max_age must be >= 0, got {self.max_age}")
        if self.trials < 1:
            raise ValueError(f"trials must be >= 1, got {self.trials}")

    def trials_per_worker(self, num_workers: int) -> int:
        """Trials each of `num_workers` workers runs so that all `trials` are covered."""
        num_workers = max(1, int(num_workers))
        per = self.trials // num_workers
        if self.trials % num_workers:
            per += 1
        return per


# Keys that never become flags.
_RESERVED_KEYS: frozenset[str] = frozenset({"config", "no_config", "args"})


def find_configs_dir(start: Path | None = None) -> Path | None:
    """Nearest `configs/` directory at or above `start` (default: the cwd).

    The search stops at the first directory holding `pyproject.toml`, so a
    checkout of this project never picks up an unrelated parent's configs.
    """
    here = (start or Path.cwd()).resolve()
    for cand in (here, *here.parents):
        configs = cand / "configs"
        if configs.is_dir():
            return configs
        if (cand / "pyproject.toml").is_file():
            return None
    return None


def default_config_path(filename: str = DEFAULT_CONFIG_NAME) -> Path | None:
    """`configs/<filename>` when it exists (see `find_configs_dir`)."""
    configs = find_configs_dir()
    if configs is None:
        return None
    path = configs / filename
    return path if path.is_file() else None


def load_config(path: Path) -> Any:
    """Parse a config file; `.yaml`/`.yml` need the `yaml` extra."""
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() not in {".yaml", ".yml"}:
        return json.loads(raw)
    try:
        import yaml
    except ImportError as exc:  # pragma: no cover
        raise SystemExit(f"{path}: YAML configs need pyyaml (pip install 'primitive-fit[yaml]')") from exc
    return yaml.safe_load(raw)


def _flag_tokens(name: str, value: Any) -> list[str]:
    flag = "--" + name.strip().lstrip("-").replace("_", "-")
    if value is None or value is False:
        return []
    if value is True:
        return [flag]
    if isinstance(value, (list, tuple)):
        tokens: list[str] = []
        for item in value:
            tokens += [flag, str(item)]
        return tokens
    return [flag, str(value)]


def _mapping_to_argv(mapping: dict[str, Any], prefix: str = "") -> list[str]:
    """Flags for a mapping; nested keys are joined with `_` (`max: {age: 5}` -> `--max-age 5`)."""
    argv: list[str] = []
    for key, value in mapping.items():
        key_str = str(key).strip()
        if not key_str:
            continue
        name = f"{prefix}_{key_str}" if prefix else key_str
        if name in _RESERVED_KEYS:
            continue
        if isinstance(value, dict):
            argv += _mapping_to_argv(value, name)
        else:
            argv += _flag_tokens(name, value)
    return argv


def config_to_argv(config_path: Path, *, section_keys: Iterable[str] = CONFIG_SECTIONS) -> list[str]:
    """Turn a config file into CLI tokens for `primitive-fit`.

    Lists become repeated flags (`"output": ["a.png", "b.svg"]` ->
    `--output a.png --output b.svg`); `true` booleans become bare flags and
    `false`/`null` values are dropped.

    Raises:
        TypeError: If the file does not hold a mapping (or `args` is not a list).
        ValueError: If `args` itself contains `--config`.
    """
    data = load_config(config_path)

    if isinstance(data, dict) and "args" in data:
        args = data["args"]
        if not isinstance(args, list):
            raise TypeError(f"{config_path}: expected 'args' to be a list, got {type(args).__name__}")
        argv = [str(x) for x in args]
        if any(tok == "--config" or tok.startswith("--config=") for tok in argv):
            raise ValueError(f"{config_path}: 'args' must not include --config")
        return argv

    if not isinstance(data, dict):
        raise TypeError(f"{config_path}: expected a mapping at top-level, got {type(data).__name__}")

    for key in section_keys:
        section = data.get(key)
        if isinstance(section, dict):
            return _mapping_to_argv(section)
    return _mapping_to_argv(data)
