"""Command-line front end for hold loading sessions.

Modes:
    hold-loader                         interactive prompts
    hold-loader --random 15 --seed 7    random hold and bar stream
    hold-loader --config run.yaml       hold and bars from a YAML file
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, TypeVar

import numpy as np
from pydantic import BaseModel, ValidationError

from hold_loader.config import (
    BarSpec,
    ConfigError,
    GeneratorSettings,
    HoldSettings,
    RunConfig,
    load_config,
    validation_details,
)
from hold_loader.core.hold import OrientationSearchError
from hold_loader.logger import configure_logging, get_engine_logger
from hold_loader.monitoring.metrics import print_summary
from hold_loader.runner.dataset import generate_bars, random_hold_settings
from hold_loader.runner.session import LoadingSession

M = TypeVar("M", bound=BaseModel)

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_BAD_INPUT = 2

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hold-loader",
        description="Load bars through a hold window, bar by bar",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--config", help="YAML run configuration")
    source.add_argument(
        "--random",
        type=int,
        metavar="N",
        help="Generate a random hold and N random bars",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (only with --random)")
    parser.add_argument("--quiet", action="store_true", help="Do not trace individual bars")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort when the orientation search disagrees with the window check",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also log to this file (rotated daily)")
    parser.add_argument("--results-dir", default=None, help="Save JSON/CSV results here")
    parser.add_argument("--notify", action="store_true", help="Send Telegram notifications")
    return parser


# ─────────────────────────────────────────────────────────────────────────────
# Interactive input
# ─────────────────────────────────────────────────────────────────────────────

def _ask_model(
    model: type[M],
    prompts: dict[str, str],
    input_fn: Callable[[str], str],
) -> M:
    """Prompt for each field of ``model`` until the values validate."""
    while True:
        values = {name: input_fn(prompt).strip() for name, prompt in prompts.items()}
        try:
            return model.model_validate(values)
        except ValidationError as exc:
            for detail in validation_details(exc):
                print(f"  invalid {detail['path']}: {detail['message']}", file=sys.stderr)


def _ask_count(input_fn: Callable[[str], str]) -> int:
    while True:
        raw = input_fn("Number of bars to process: ").strip()
        try:
            return GeneratorSettings(count=raw).count
        except ValidationError:
            print("  invalid count: enter a whole number greater than 0", file=sys.stderr)


def prompt_run_config(input_fn: Callable[[str], str] | None = None) -> RunConfig:
    """Ask for the hold, the window and every bar, as the loading floor does."""
    input_fn = input_fn or input
    hold = _ask_model(
        HoldSettings,
        {
            "hold_volume": "Total hold volume: ",
            "window_width": "Window width: ",
            "window_height": "Window height: ",
        },
        input_fn,
    )
    count = _ask_count(input_fn)

    bars: list[BarSpec] = []
    for i in range(count):
        print(f"\n--- Bar {i + 1} ---")
        bars.append(_ask_model(
            BarSpec,
            {
                "width": "Initial width (w): ",
                "length": "Initial length (l): ",
                "height": "Initial height (h): ",
            },
            input_fn,
        ))
    return RunConfig(hold=hold, bars=bars)


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def resolve_run_config(args: argparse.Namespace) -> RunConfig:
    """Build the RunConfig for the selected mode (config file, random, prompts)."""
    if args.config:
        config = load_config(args.config)
        if config.generator is None:
            return config
        if config.bars:
            raise ConfigError(
                "Configuration lists bars and a generator; use one or the other",
                error_type="validation",
                path=Path(args.config),
                details=[{"path": "generator", "message": "not allowed together with bars"}],
            )
        gen = config.generator
        return config.model_copy(update={
            "bars": generate_bars(gen.count, gen.seed, gen.min_dim, gen.max_dim),
        })

    if args.random is not None:
        generator = GeneratorSettings(count=args.random, seed=args.seed)
        # one stream for hold and bars, so the bars don't replay the hold's draws
        rng = np.random.default_rng(generator.seed)
        return RunConfig(
            hold=random_hold_settings(rng=rng),
            bars=generate_bars(generator.count, rng=rng),
            generator=generator,
        )

    return prompt_run_config()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.seed is not None and args.random is None:
            parser.error("--seed only applies with --random")
    except SystemExit as exc:
        # argparse has already printed usage and the message to stderr
        return exc.code if isinstance(exc.code, int) else EXIT_BAD_INPUT

    configure_logging(args.log_level, args.log_file)

    try:
        config = resolve_run_config(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        for detail in exc.details:
            print(f"  {detail['path']}: {detail['message']}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    session = LoadingSession(
        config.hold,
        engine_logger=None if args.quiet else get_engine_logger(),
        strict=args.strict or config.strict,
        results_dir=args.results_dir or config.results_dir,
        send_telegram_updates=args.notify or config.notify,
    )

    try:
        metrics = session.run_sync(config.bars)
    except OrientationSearchError as exc:
        print(f"Internal error: {exc}", file=sys.stderr)
        return EXIT_FAULT

    print(print_summary(metrics))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
