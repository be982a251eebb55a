"""Command-line entry point: image → epicycles.v1 YAML (+ preview PNG).

Runs the full pipeline on one image or every image in a directory:
    1. Load and validate config (YAML, epicycle_tracer.v1)
    2. Apply CLI overrides (max terms, min amplitude, ordering strategy)
    3. Image → edge mask → skeleton → ordered path → epicycles
    4. Save <stem>_epicycles.yaml and optionally <stem>_preview.png

Refactored architecture:
    - trace_main(input_path, output_dir, cfg) → dict
        * Callable function (used by tests and batch jobs)
    - main(argv) → exit code, wired to the `epicycle-tracer` console script
      and scripts/trace_epicycles.py

CLI:
    epicycle-tracer --input shape_0.png --output outputs/shape_0/
    epicycle-tracer --input data/shapes/ --output outputs/ \\
                    --config configs/epicycle_tracer_v1.yaml --max-terms 200

Exit codes:
    0  every image traced
    1  at least one image failed (error logged with the failing stage)
    2  bad arguments or config, or no images at the input path
"""

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .data_pipeline import edge_mask, preview
from .data_pipeline.pipeline import EpicyclePipeline, save_trace
from .data_pipeline.spectral import EpicycleError
from .utils import fs, hashing, logging_config, validators

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff")


def trace_main(
    input_path: str,
    output_dir: str,
    cfg: Optional[validators.EpicycleTracerV1] = None,
) -> Dict[str, object]:
    """Trace one image.

    Parameters
    ----------
    input_path : str
        Image file
    output_dir : str
        Directory for artifacts (created if missing)
    cfg : EpicycleTracerV1, optional
        Config; defaults when None

    Returns
    -------
    Dict[str, object]
        - epicycles_path: str
        - preview_path: Optional[str]
        - n_points: int
        - n_epicycles: int

    Raises
    ------
    FileNotFoundError
        If the image doesn't exist
    EpicycleError
        If a pipeline stage fails
    OSError, RuntimeError
        If the output directory or an artifact cannot be written
    """
    cfg = cfg or validators.EpicycleTracerV1()
    src = Path(input_path)
    out = fs.ensure_dir(output_dir)

    logging_config.push_context(image=src.name)
    try:
        mask = edge_mask.edge_mask_from_image(src, cfg.edge_detection)
        trace = dataclasses.replace(
            EpicyclePipeline.from_config(cfg).run(mask),
            source_sha256=hashing.sha256_file(src),
        )

        epicycles_path = out / f"{src.stem}_epicycles.yaml"
        save_trace(trace, epicycles_path)

        preview_path = None
        if cfg.preview.enabled:
            preview_path = out / f"{src.stem}_preview.png"
            fs.atomic_save_image(preview.render_preview(trace, cfg.preview), preview_path)
            logger.info(f"Saved preview to {preview_path}")
    finally:
        logging_config.pop_context(keys=["image"])

    return {
        'epicycles_path': str(epicycles_path),
        'preview_path': str(preview_path) if preview_path else None,
        'n_points': trace.n_points,
        'n_epicycles': len(trace.epicycles),
    }


def _collect_images(input_path: Path) -> List[Path]:
    if not input_path.exists():
        return []
    if input_path.is_dir():
        return sorted(
            p for p in input_path.iterdir()
            if p.suffix.lower() in IMAGE_SUFFIXES and not p.name.startswith('.')
        )
    return [input_path]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epicycle-tracer",
        description="Trace an image's edges and decompose the stroke into Fourier epicycles",
    )
    parser.add_argument("--input", "-i", required=True,
                        help="Input image path or directory")
    parser.add_argument("--output", "-o", default="outputs/epicycles",
                        help="Output directory")
    parser.add_argument("--config", "-c", default=None,
                        help="Tracer config (epicycle_tracer.v1 YAML)")
    parser.add_argument("--max-terms", type=int, default=None,
                        help="Override spectral.max_terms")
    parser.add_argument("--min-amplitude", type=float, default=None,
                        help="Override spectral.min_amplitude")
    parser.add_argument("--strategy", choices=["greedy", "kdtree"], default=None,
                        help="Override ordering.strategy")
    parser.add_argument("--no-preview", action="store_true",
                        help="Skip the preview PNG")
    parser.add_argument("--log-level", default=None,
                        help="Override logging.log_level")
    return parser


def load_config(args: argparse.Namespace) -> validators.EpicycleTracerV1:
    """Config file (or defaults) with CLI overrides applied and revalidated."""
    cfg = (
        validators.load_epicycle_tracer_config(args.config)
        if args.config else validators.EpicycleTracerV1()
    )
    data = cfg.model_dump(by_alias=True)
    if args.max_terms is not None:
        data['spectral']['max_terms'] = args.max_terms
    if args.min_amplitude is not None:
        data['spectral']['min_amplitude'] = args.min_amplitude
    if args.strategy is not None:
        data['ordering']['strategy'] = args.strategy
    if args.no_preview:
        data['preview']['enabled'] = False
    if args.log_level is not None:
        data['logging']['log_level'] = args.log_level
    return validators.EpicycleTracerV1(**data)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args)
    except (FileNotFoundError, ValueError) as e:
        logging_config.setup_logging(log_level="INFO")
        logger.error(f"Invalid configuration: {e}")
        logging_config.shutdown()
        return 2

    logging_config.setup_logging(
        log_level=cfg.logging.log_level,
        log_file=cfg.logging.log_file,
        json=cfg.logging.json_format,
        quiet_libs=["PIL"],
        context={"app": "trace"},
    )
    logging_config.install_excepthook()

    try:
        return _trace_all(Path(args.input), args.output, cfg)
    finally:
        logging_config.pop_context(keys=["app"])
        logging_config.shutdown()


def _trace_all(input_path: Path, output_dir: str, cfg: validators.EpicycleTracerV1) -> int:
    images = _collect_images(input_path)
    if not images:
        logger.error(f"No images found at {input_path}")
        return 2

    logger.info(f"Tracing {len(images)} image(s) into {output_dir}")
    failures = 0
    for image in images:
        try:
            result = trace_main(str(image), output_dir, cfg)
        except (EpicycleError, ValueError, OSError, RuntimeError) as e:
            failures += 1
            logger.error(f"{image.name}: {e}")
            continue
        logger.info(
            f"{image.name}: {result['n_epicycles']} epicycles from {result['n_points']} points"
        )

    if failures:
        logger.error(f"{failures} of {len(images)} image(s) failed")
        return 1
    return 0
