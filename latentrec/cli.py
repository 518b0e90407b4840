"""Command-line entry point: train a model or run a hyperparameter grid search."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

import pandas as pd

from .config import MODEL_NAMES, AppConfig, find_config, load_config
from .data import load_ratings_csv
from .errors import RecommenderError
from .evaluation.grid_search import best_result, grid_search, results_frame
from .models import new_svd, new_svdpp
from .recommend import top_n
from .utils import setup_logging


logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="latentrec", description="Latent-factor rating prediction (SVD / SVD++)")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: search upwards)")
    p.add_argument("--log-level", type=str, default="INFO", help="DEBUG/INFO/WARNING/ERROR")
    sub = p.add_subparsers(dest="command", required=True)

    def _common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--ratings", type=Path, default=None, help="Delimited user,item,rating file")
        header = sp.add_mutually_exclusive_group()
        header.add_argument("--header", dest="header", action="store_true", default=None, help="Ratings file has a header row")
        header.add_argument("--no-header", dest="header", action="store_false", help="Ratings file has no header row")
        sp.add_argument("--sep", type=str, default=None, help="Field separator (default from config)")
        sp.add_argument("--seed", type=int, default=None, help="Override random seed")

    t = sub.add_parser("train", help="Train on all ratings and print top-N predictions for a user")
    _common(t)
    t.add_argument("--model", choices=MODEL_NAMES, default=None, help="Model variant")
    t.add_argument("--user", type=str, default=None, help="User to rank items for")
    t.add_argument("--top-n", type=int, default=None, help="How many items to show")
    t.add_argument("--exclude-rated", action="store_true", help="Skip items the user already rated")
    t.add_argument("--epochs", type=int, default=None, help="Override epochs")
    t.add_argument("--factors", type=int, default=None, help="Override factor count")
    t.add_argument("--lr", type=float, default=None, help="Override learning rate")
    t.add_argument("--reg", type=float, default=None, help="Override regularization")
    t.add_argument("--verbose", action="store_true", help="Log every epoch")

    g = sub.add_parser("grid-search", help="Split ratings and score every grid combination by RMSE")
    _common(g)
    g.add_argument("--test-fraction", type=float, default=None, help="Held-out fraction in [0, 1]")
    g.add_argument("--jobs", type=int, default=None, help="Worker threads (<=0: one per CPU)")
    return p


def _load_app_config(path: Path | None) -> AppConfig:
    if path is None:
        path = find_config()
        if path is None:
            logger.info("No config.yaml found; using built-in defaults")
            return AppConfig()
    logger.info("Using config %s", path)
    return load_config(path)


def _ratings_path(args: argparse.Namespace, cfg: AppConfig) -> Path:
    path = args.ratings or cfg.dataset.ratings_path
    if path is None:
        raise FileNotFoundError("no ratings file given (use --ratings or dataset.ratings_path)")
    return Path(path)


def _run_train(args: argparse.Namespace, cfg: AppConfig) -> None:
    dataset = load_ratings_csv(
        _ratings_path(args, cfg),
        has_header=cfg.dataset.has_header if args.header is None else args.header,
        sep=args.sep or cfg.dataset.sep,
    )
    overrides = {
        "num_epochs": args.epochs,
        "num_factors": args.factors,
        "lr": args.lr,
        "reg": args.reg,
    }
    training = dataclasses.replace(
        cfg.training,
        verbose=bool(args.verbose or cfg.training.verbose),
        **{k: v for k, v in overrides.items() if v is not None},
    )
    model_name = args.model or cfg.model
    seed = args.seed if args.seed is not None else cfg.seed
    factory = new_svdpp if model_name == "svdpp" else new_svd

    start = time.perf_counter()
    model = factory(dataset, training, seed)
    model.fit(model.config.num_epochs)
    logger.info("%s training took %.2fs", model_name, time.perf_counter() - start)

    if args.user is None:
        return
    n = args.top_n if args.top_n is not None else cfg.top_n
    ranked = top_n(model, args.user, n=n, exclude_rated=bool(args.exclude_rated))
    if args.user not in dataset.user_index:
        logger.warning("User %r not in ratings; scores fall back to item biases", args.user)

    print(f"\n=== Top {len(ranked)} for user {args.user} ({model_name}) ===")
    if ranked:
        print(pd.DataFrame(ranked, columns=["item", "score"]).to_string(index=False))
    else:
        print("No items to rank.")


def _run_grid_search(args: argparse.Namespace, cfg: AppConfig) -> None:
    dataset = load_ratings_csv(
        _ratings_path(args, cfg),
        has_header=cfg.dataset.has_header if args.header is None else args.header,
        sep=args.sep or cfg.dataset.sep,
    )
    # Fail on empty or malformed parameter lists before splitting or training anything.
    cfg.grid.validate()
    seed = args.seed if args.seed is not None else cfg.seed
    fraction = args.test_fraction if args.test_fraction is not None else cfg.dataset.test_fraction
    trainset, testset = dataset.split(fraction, rng=seed)
    logger.info("Split: train=%d test=%d", len(trainset), len(testset))

    results = grid_search(
        trainset,
        testset,
        cfg.grid,
        seed=seed,
        n_jobs=args.jobs if args.jobs is not None else cfg.n_jobs,
    )
    df = results_frame(results).sort_values("loss", kind="stable")

    print("\n=== Grid Search Results (by RMSE) ===")
    print(df.to_string(index=False))
    best = best_result(results)
    print(
        f"\nBest: epochs={best.num_epochs} factors={best.num_factors} reg={best.reg} "
        f"lr={best.lr} init_std_dev={best.init_std_dev} rmse={best.loss:.4f}"
    )


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    try:
        cfg = _load_app_config(args.config)
        if args.command == "train":
            _run_train(args, cfg)
        else:
            _run_grid_search(args, cfg)
    except (RecommenderError, FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
