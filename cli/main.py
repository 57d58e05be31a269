"""Command line entry point for SketchNet training runs."""

from __future__ import annotations

import argparse
import json
import logging
import math
from pathlib import Path
from typing import Iterable

from sketchnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "average_loss": None if math.isnan(result.average_loss) else result.average_loss,
        "weights": result.weights_path,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="digits-sigmoid",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument("--steps", type=int, help="Number of training steps")
    parser.add_argument("--samples", type=Path, help="Training sample file")
    parser.add_argument("--weights", type=Path, help="Weight file to load and save")
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and manifest")
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation")
    parser.add_argument(
        "--learning-rate", type=float, help="Fixed learning rate for every step"
    )
    parser.add_argument(
        "--train-bias",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Apply bias gradients to the live bias weights",
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a loss curve on completion"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = pipelines.load_preset(args.preset)
    if args.config:
        override = pipelines.load_config(args.config)
        if pipelines.REQUIRED_SECTIONS <= set(override.keys()):
            config = override
        else:
            config = pipelines.merge_config(config, override)
    config = json.loads(json.dumps(config))

    train_cfg = config.setdefault("train", {})
    if args.steps is not None:
        train_cfg["steps"] = int(args.steps)
    if args.weights is not None:
        train_cfg["weights"] = str(args.weights)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.learning_rate is not None:
        train_cfg["learning_rate"] = float(args.learning_rate)
    if args.train_bias is not None:
        train_cfg["train_bias"] = bool(args.train_bias)
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.samples is not None:
        config.setdefault("data", {})["samples"] = str(args.samples)
    if args.seed is not None:
        config.setdefault("network", {})["seed"] = int(args.seed)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
