from __future__ import annotations

from pathlib import Path

import pytest

from latentrec.config import AppConfig, find_config, load_config, parse_config
from latentrec.errors import ConfigurationError
from latentrec.models import SVDConfig


REPO_ROOT = Path(__file__).resolve().parents[1]


def test_repo_config_loads() -> None:
    cfg = load_config(REPO_ROOT / "config.yaml")
    assert cfg.seed == 42
    assert cfg.model == "svd"
    assert cfg.training == SVDConfig()
    assert len(cfg.grid) == 8
    assert cfg.dataset.ratings_path == (REPO_ROOT / "data" / "ratings.csv").resolve()


def test_empty_document_gives_defaults() -> None:
    cfg = parse_config(None)
    assert cfg == AppConfig()
    assert cfg.grid.num_factors == (50,)


def test_scalar_grid_values_become_lists() -> None:
    cfg = parse_config({"grid_search": {"num_epochs": 5, "lr": [0.01, 0.02]}, "training": {"model": "SVDpp"}})
    assert cfg.grid.num_epochs == (5,)
    assert cfg.grid.lr == (0.01, 0.02)
    assert cfg.model == "svdpp"


@pytest.mark.parametrize(
    "raw",
    [
        ["not", "a", "mapping"],
        {"training": "fast"},
        {"training": {"model": "als"}},
        {"training": {"momentum": 0.9}},
        {"grid_search": {"reg": "high"}},
    ],
)
def test_malformed_config_is_configuration_error(raw: object) -> None:
    with pytest.raises(ConfigurationError):
        parse_config(raw)


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("training: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_config(bad)


def test_find_config_searches_upwards(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text("seed: 1\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert find_config() == (tmp_path / "config.yaml").resolve()


def test_training_values_are_converted_from_yaml_strings(tmp_path: Path) -> None:
    # PyYAML reads `5e-3` (no dot) as a string.
    path = tmp_path / "config.yaml"
    path.write_text("training:\n  lr: 5e-3\n  num_factors: '4'\n  verbose: 'yes'\n")

    cfg = load_config(path)

    assert cfg.training.lr == pytest.approx(0.005)
    assert isinstance(cfg.training.lr, float)
    assert cfg.training.num_factors == 4
    assert cfg.training.verbose is True


def test_grid_values_are_converted() -> None:
    cfg = parse_config({"grid_search": {"lr": ["5e-3", 0.01], "num_factors": [2.0, "8"]}})
    assert cfg.grid.lr == (0.005, 0.01)
    assert cfg.grid.num_factors == (2, 8)


@pytest.mark.parametrize(
    "raw",
    [
        {"training": {"lr": "fast"}},
        {"training": {"num_factors": 2.5}},
        {"training": {"num_epochs": True}},
        {"training": {"verbose": "maybe"}},
        {"dataset": {"test_fraction": "a fifth"}},
        {"grid_search": {"num_epochs": ["ten"]}},
        {"seed": "lucky"},
    ],
)
def test_unconvertible_values_are_configuration_errors(raw: object) -> None:
    with pytest.raises(ConfigurationError):
        parse_config(raw)
