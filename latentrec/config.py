"""YAML configuration for the command-line entry points."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError
from .evaluation.grid_search import GRID_FIELDS, GridSearchParams
from .models import SVDConfig


MODEL_NAMES = ("svd", "svdpp")


@dataclass(frozen=True)
class DatasetSettings:
    ratings_path: Optional[Path] = None
    has_header: bool = False
    sep: str = ","
    test_fraction: float = 0.2


def _default_grid() -> GridSearchParams:
    return GridSearchParams(num_epochs=[20], num_factors=[50], reg=[0.02], lr=[0.005], init_std_dev=[0.1])


@dataclass(frozen=True)
class AppConfig:
    seed: Optional[int] = None
    model: str = "svd"
    dataset: DatasetSettings = field(default_factory=DatasetSettings)
    training: SVDConfig = field(default_factory=SVDConfig)
    grid: GridSearchParams = field(default_factory=_default_grid)
    n_jobs: int = 1
    top_n: int = 50


def find_config(name: str = "config.yaml") -> Optional[Path]:
    """Search upwards from the working directory for `name`."""
    start = Path.cwd().resolve()
    for candidate in (start, *start.parents):
        if (candidate / name).is_file():
            return candidate / name
    return None


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"config section {name!r} must be a mapping")
    return value


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")

TRAINING_TYPES = {
    "num_factors": int,
    "init_mean": float,
    "init_std_dev": float,
    "lr": float,
    "reg": float,
    "num_epochs": int,
    "verbose": bool,
}
GRID_TYPES = {"num_epochs": int, "num_factors": int, "reg": float, "lr": float, "init_std_dev": float}


def _convert(value: Any, kind: type, name: str) -> Any:
    """Coerce a YAML scalar to `kind`.

    PyYAML leaves exponents without a dot (`5e-3`) as strings, so numbers are
    converted explicitly rather than trusted.
    """
    try:
        if kind is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(value)
        if isinstance(value, bool):
            raise TypeError(value)
        if kind is int and isinstance(value, float) and not value.is_integer():
            raise ValueError(value)
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}") from exc


def _as_list(value: Any, name: str) -> list:
    kind = GRID_TYPES[name]
    if isinstance(value, (list, tuple)):
        return [_convert(v, kind, f"grid_search.{name}") for v in value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [_convert(value, kind, f"grid_search.{name}")]
    raise ConfigurationError(f"grid_search.{name} must be a list of values")


def parse_config(raw: Any, base_dir: Optional[Path] = None) -> AppConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError("config.yaml must be a mapping")

    ds_raw = _section(raw, "dataset")
    ratings_path = ds_raw.get("ratings_path")
    if ratings_path is not None:
        ratings_path = Path(str(ratings_path))
        if base_dir is not None and not ratings_path.is_absolute():
            ratings_path = (base_dir / ratings_path).resolve()
    dataset = DatasetSettings(
        ratings_path=ratings_path,
        has_header=_convert(ds_raw.get("has_header", False), bool, "dataset.has_header"),
        sep=str(ds_raw.get("sep", ",")),
        test_fraction=_convert(ds_raw.get("test_fraction", 0.2), float, "dataset.test_fraction"),
    )

    tr_raw = dict(_section(raw, "training"))
    model = str(tr_raw.pop("model", "svd")).lower()
    if model not in MODEL_NAMES:
        raise ConfigurationError(f"training.model must be one of {MODEL_NAMES}, got {model!r}")
    known = {f.name for f in dataclasses.fields(SVDConfig)}
    unknown = sorted(set(tr_raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown training settings: {unknown}")
    training = SVDConfig(
        **{name: _convert(value, TRAINING_TYPES[name], f"training.{name}") for name, value in tr_raw.items()}
    )

    gs_raw = dict(_section(raw, "grid_search"))
    n_jobs = _convert(gs_raw.pop("n_jobs", 1), int, "grid_search.n_jobs")
    defaults = _default_grid()
    grid = GridSearchParams(
        **{name: _as_list(gs_raw.get(name, getattr(defaults, name)), name) for name in GRID_FIELDS}
    )

    seed = raw.get("seed")
    return AppConfig(
        seed=None if seed is None else _convert(seed, int, "seed"),
        model=model,
        dataset=dataset,
        training=training,
        grid=grid,
        n_jobs=n_jobs,
        top_n=_convert(_section(raw, "report").get("top_n", 50), int, "report.top_n"),
    )


def load_config(path: Path) -> AppConfig:
    """Load `config.yaml`; relative paths inside resolve against its directory."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"config file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"could not parse {path}: {exc}") from exc
    return parse_config(raw, base_dir=path.resolve().parent)
