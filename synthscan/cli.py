# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

"""
Command line entry point.

Usage:
    synthscan analyze photo.jpg                 # progress + verdict
    synthscan analyze photo.jpg --json          # result as one JSON line
    synthscan evaluate data/validation          # heuristic threshold sweep
    synthscan model                             # fetch the classifier
"""

import argparse
import json
import os
import sys
from pathlib import Path

from synthscan import settings
from synthscan.log import init_logging

# ANSI colours (disabled if not a tty)
if sys.stdout.isatty():
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    DIM = "\033[2m"
    RESET = "\033[0m"
else:
    GREEN = YELLOW = RED = DIM = RESET = ""


def cmd_analyze(args):
    """Run one image through the background runner."""
    from ai_detection.detectors.orchestrator import ImageAnalyzer
    from lib.analyzer.processing import AnalysisManager, ErrorMessage, ProgressMessage
    from lib.exceptions import AnalysisTimeout

    path = Path(args.image)
    if not path.is_file():
        print(json.dumps({"error": f"Image not found: {path}"}) if args.json
              else f"{RED}✗ Image not found: {path}{RESET}")
        return 1

    analyzer = ImageAnalyzer(model_path=args.model)
    with AnalysisManager(analyzer=analyzer, workers=1) as manager:
        handle = manager.submit(path.read_bytes())
        try:
            for message in handle.messages(timeout=args.timeout):
                if isinstance(message, ProgressMessage):
                    if not args.json and not args.quiet:
                        print(f"  {DIM}[{message.progress:3d}%]{RESET} {message.step}")
                    continue

                if args.json:
                    print(json.dumps(message.to_dict()))
                elif isinstance(message, ErrorMessage):
                    print(f"{RED}✗ Analysis failed: {message.error}{RESET}")
                else:
                    _print_result(message.result)
                return 1 if isinstance(message, ErrorMessage) else 0
        except AnalysisTimeout as e:
            handle.cancel()
            manager.shutdown(wait=False)
            print(json.dumps({"error": str(e)}) if args.json else f"{RED}✗ {e}{RESET}")
            return 1
    return 1


def _print_result(result):
    colour = RED if result.is_ai_generated else GREEN
    print(f"\n{colour}{result.final_verdict}{RESET}  (probability {result.probability:.4f})")
    print(f"  Camera info present:  {'yes' if result.camera_info_present else 'no'}")
    print(f"  Frequency spectrum:   {result.frequency_spectrum:.4f}")
    print(f"  Noise residual:       {result.noise_residual:.4f}")
    print(f"  Color histogram:      {result.color_histogram:.4f}")


def cmd_evaluate(args):
    """Sweep a heuristic threshold over a labelled dataset."""
    from ai_detection.evaluation import evaluate

    report = evaluate(args.dataset, metric=args.metric)
    if args.json:
        print(json.dumps(report))
        return 0 if report["samples"] else 1

    if not report["samples"]:
        print(f"{YELLOW}No validation images found in {args.dataset}.{RESET}")
        return 1
    print(f"Metric:          {report['metric']}")
    print(f"Images scored:   {report['samples']}")
    print(f"Best threshold:  {report['threshold']:.2f}")
    print(f"Accuracy:        {report['accuracy'] * 100:.2f}%")
    return 0


def cmd_model(args):
    """Download, verify or remove the classifier artifact."""
    from ai_detection.download_models import clean_model, download_model, sizeof_fmt, verify_model

    if args.clean:
        if clean_model(args.model):
            print(f"  {YELLOW}✗{RESET} Removed {args.model}")
        else:
            print(f"  {DIM}  (not present) {args.model}{RESET}")
        return 0

    if args.verify:
        if verify_model(args.model):
            size = sizeof_fmt(os.path.getsize(args.model))
            print(f"  {GREEN}✓{RESET} {args.model}  {DIM}({size}){RESET}")
            return 0
        print(f"  {RED}✗{RESET} {args.model}  {DIM}(not downloaded){RESET}")
        return 1

    try:
        path, downloaded = download_model(args.model, args.url)
    except OSError as e:
        print(f"  {RED}✗ Download failed: {e}{RESET}")
        return 1
    size = sizeof_fmt(os.path.getsize(path))
    note = size if downloaded else f"{size}, cached"
    print(f"  {GREEN}✓{RESET} {path}  {DIM}({note}){RESET}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="synthscan",
        description="Estimate whether an image is AI-generated.")
    parser.add_argument("--log-level", default=None,
                        help="Override the configured log level (e.g. DEBUG)")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {settings.SYNTHSCAN_VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a single image")
    analyze.add_argument("image", help="Path to the image file")
    analyze.add_argument("--model", default=settings.MODEL_PATH,
                         help="Classifier artifact (.onnx or TorchScript)")
    analyze.add_argument("--json", action="store_true",
                         help="Print the terminal message as JSON")
    analyze.add_argument("--quiet", action="store_true",
                         help="Do not print progress steps")
    analyze.add_argument("--timeout", type=float, default=None,
                         help="Seconds to wait for each progress message")
    analyze.set_defaults(func=cmd_analyze)

    evaluate = sub.add_parser("evaluate", help="Tune a heuristic threshold")
    evaluate.add_argument("dataset", help="Directory with real/ and ai/ subdirectories")
    evaluate.add_argument("--metric", default="noise_residual",
                          choices=["frequency_spectrum", "noise_residual", "color_histogram"])
    evaluate.add_argument("--json", action="store_true", help="Print the report as JSON")
    evaluate.set_defaults(func=cmd_evaluate)

    model = sub.add_parser("model", help="Download or check the classifier artifact")
    model.add_argument("--model", default=settings.MODEL_PATH, help="Destination path")
    model.add_argument("--url", default=settings.MODEL_URL, help="Download source")
    group = model.add_mutually_exclusive_group()
    group.add_argument("--verify", action="store_true",
                       help="Check that the model is present (don't download)")
    group.add_argument("--clean", action="store_true", help="Remove the model file")
    model.set_defaults(func=cmd_model)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    init_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
