from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from mediahash import __version__
from mediahash.core.config import settings
from mediahash.models import HashMethod
from mediahash.schemas import HashComputationTask
from mediahash.services.pipelines import TaskProcessor
from mediahash.utils.cv_ops import configure_threads

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _bits_arg(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"couldn't parse bits argument {text!r}")
    if value <= 0 or value % 4:
        raise argparse.ArgumentTypeError("bits argument should be a positive multiple of 4")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediahash",
        description="Perceptual hashes of image and video files.",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    method = parser.add_mutually_exclusive_group()
    method.add_argument(
        "-q", "--quick", action="store_true", help="use the quick block-mean method"
    )
    method.add_argument(
        "-p", "--phash", action="store_true", help="use the 64-bit DCT hash"
    )
    parser.add_argument(
        "-V", "--video", action="store_true", help="expect video files instead of images"
    )
    parser.add_argument(
        "-b",
        "--bits",
        type=_bits_arg,
        default=None,
        help=f"create hash of size N^2 bits (default {settings.DEFAULT_BITS}, halved for video)",
    )
    parser.add_argument("--debug", action="store_true", help="print hashes as 2D maps")
    parser.add_argument("files", nargs="+", metavar="file")
    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else settings.LOG_LEVEL,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _method(args: argparse.Namespace) -> HashMethod:
    if args.phash:
        return HashMethod.DCT64
    if args.quick:
        return HashMethod.BLOCKHASH_QUICK
    return HashMethod.BLOCKHASH


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.debug)
    configure_threads(settings.OPENCV_NUM_THREADS)

    bits = args.bits if args.bits is not None else settings.DEFAULT_BITS
    method = _method(args)
    try:
        tasks = [
            HashComputationTask(
                src_file_name=f,
                bits=bits,
                hashing_method=method,
                debug=args.debug,
                video=args.video,
            )
            for f in args.files
        ]
    except ValidationError as e:
        parser.error(f"invalid arguments: {e.errors()[0]['msg']}")

    processor = TaskProcessor()
    failed = 0
    for task in tasks:
        if not processor.process_task(task):
            failed += 1

    if failed:
        logger.info("%d of %d files failed", failed, len(tasks))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
