"""
cli.py  –  `unyaffs` command line front end
========================================================

Extract a YAFFS2 image (as produced by mkyaffs2image or dumped from NAND
with the spare area) into a directory.

Usage
-----
```bash
unyaffs system.img                  # extract into the current directory
unyaffs system.img out/             # extract into out/ (created if needed)
unyaffs -t system.img               # list the paths only
unyaffs -v system.img out/          # extract and print an ls -l style listing
unyaffs -l 2 system.img             # force 4K chunks / 128 byte spare
unyaffs --scan system.img           # dump the tags of every chunk
cat system.img | unyaffs - out/     # image from stdin
```

Layouts
~~~~~~~
* 0 – detect chunk and spare size (default)
* 1 – 2K chunk, 64 byte spare
* 2 – 4K chunk, 128 byte spare
* 3 – 8K chunk, 256 byte spare
* 4 – 16K chunk, 512 byte spare
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from typing import List

from . import __version__
from .errors import HostOperationError, UnyaffsError
from .extract import extract
from .layout import LAYOUTS
from .scan import scan


def _open_image(name: str, stack: contextlib.ExitStack):
    if name == "-":
        return sys.stdin.buffer
    try:
        return stack.enter_context(open(name, "rb"))
    except OSError as exc:
        raise HostOperationError("Open image file failed", exc) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unyaffs",
        description="Extract files from a YAFFS2 file system image.")
    parser.add_argument("image", help="image file name, '-' for stdin")
    parser.add_argument("basedir", nargs="?", default=".",
                        help="directory to extract into (default: current directory)")
    parser.add_argument("-l", "--layout", type=int, default=0,
                        choices=range(0, len(LAYOUTS) + 1), metavar="LAYOUT",
                        help="flash memory layout: 0 = detect (default), "
                             "1 = 2K/64, 2 = 4K/128, 3 = 8K/256, 4 = 16K/512")
    parser.add_argument("-t", "--list", action="store_true",
                        help="list image contents instead of extracting")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="verbose output")
    parser.add_argument("-V", "--version", action="version",
                        version=f"V{__version__}")
    parser.add_argument("--scan", action="store_true",
                        help="dump the tags of every chunk and exit")
    return parser


def run(args: argparse.Namespace) -> None:
    layout = LAYOUTS[args.layout - 1] if args.layout else None

    with contextlib.ExitStack() as stack:
        image = _open_image(args.image, stack)

        if args.scan:
            scan(image, layout)
            return

        # modes come straight from the image
        old_umask = os.umask(0)
        try:
            extract(image, args.basedir, layout=layout,
                    list_only=args.list, verbose=args.verbose)
        finally:
            os.umask(old_umask)


def main(argv: List[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.INFO if args.verbose else logging.WARNING)

    try:
        run(args)
    except UnyaffsError as exc:
        sys.stdout.flush()
        sys.exit(str(exc))


if __name__ == "__main__":
    main()
