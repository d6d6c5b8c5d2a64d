"""
Command line front end: segment image files with the configured models.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from .config import ConfigLoader, PipelineConfig
from .core.exceptions import GrassNetException, InferenceError, InvalidArgument
from .core.logging_config import configure_logging, get_logger, parse_level
from .frames import load_frame, save_overlay
from .segmentation import SegmentationPipeline

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grassnet",
        description="Segment images into background / grass / other classes"
    )
    parser.add_argument(
        "images",
        nargs="+",
        help="Image files to segment"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a pipeline YAML file (default: bundled pipeline_config.yaml)"
    )
    parser.add_argument(
        "--model-index",
        type=int,
        default=None,
        help="Catalog index of the model to start with"
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Inference threads"
    )
    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        choices=["onnx", "mock"],
        help="Inference backend (overrides config)"
    )
    parser.add_argument(
        "--model-dir",
        type=str,
        default=None,
        help="Directory holding the model files (overrides config)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Directory to write colorized masks to"
    )
    parser.add_argument(
        "--cycle-models",
        action="store_true",
        help="Run every image through every catalog model"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides config)"
    )
    return parser


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Load YAML config and apply command line overrides."""
    if args.config:
        config_path = Path(args.config)
        config = ConfigLoader(config_path.parent).load_pipeline_config(config_path.name)
    else:
        config = ConfigLoader().load_pipeline_config()

    if args.backend:
        config.runtime.inference_backend = args.backend
    if args.model_dir:
        config.assets.model_dir = args.model_dir
    if args.model_index is not None:
        config.runtime.initial_model = args.model_index
    return config


def segment_images(pipeline: SegmentationPipeline, images: List[str], output: Optional[Path]) -> int:
    """Segment each image with the current model. Returns the number of failures."""
    descriptor = pipeline.current_model()
    failures = 0

    for image_path in images:
        try:
            frame = load_frame(image_path, descriptor.input_width, descriptor.input_height)
            start = time.perf_counter()
            result = pipeline.segment_frame(frame)
            elapsed_ms = (time.perf_counter() - start) * 1000.0
        except (InvalidArgument, InferenceError) as e:
            logger.error(f"{image_path}: {e}")
            failures += 1
            continue

        logger.info(
            f"{image_path} [{descriptor.path}] {elapsed_ms:.1f} ms, "
            f"pixels per class: {result.class_counts().tolist()}"
        )
        if output is not None:
            target = output / f"{Path(image_path).stem}_{descriptor.path}.png"
            save_overlay(target, result.colors())
            logger.info(f"Wrote {target}")

    return failures


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the command line tool."""
    args = build_parser().parse_args(argv)

    configure_logging(level=parse_level(args.log_level or "INFO"))

    try:
        config = load_config(args)
    except GrassNetException as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    if not args.log_level:
        configure_logging(level=parse_level(config.log_level))

    output = Path(args.output) if args.output else None
    if output is not None:
        output.mkdir(parents=True, exist_ok=True)

    try:
        pipeline = SegmentationPipeline.from_config(config)
    except GrassNetException as e:
        logger.error(f"Failed to start pipeline: {e}")
        return 1

    failures = 0
    with pipeline:
        try:
            if args.threads is not None:
                pipeline.set_thread_count(args.threads)

            rounds = pipeline.catalog.count() if args.cycle_models else 1
            for round_index in range(rounds):
                if round_index:
                    pipeline.change_model()
                failures += segment_images(pipeline, args.images, output)
        except GrassNetException as e:
            logger.error(f"Pipeline error: {e}")
            return 1

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
