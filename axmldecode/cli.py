import argparse
import os
import sys
import tempfile
import zipfile
from pathlib import Path
from typing import List, Union

from loguru import logger

from . import __version__
from .archive import load_input
from .decoder import decode
from .errors import ResParserError
from .serializer import to_xml

LOG_FORMAT = "{line: >4}:{level}:\t{message}"


def setup_logging(verbosity: int = 0) -> None:
    """
    Send log records to stderr. Without `-v` the level comes from
    `LOGURU_LEVEL`, falling back to WARNING.
    """
    if verbosity >= 2:
        level = "DEBUG"
    elif verbosity == 1:
        level = "INFO"
    else:
        level = os.environ.get("LOGURU_LEVEL", "WARNING")
    logger.remove()  # All configured handlers are removed
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axmldecode",
        description="Decode an Android binary XML file (AXML) into text.",
    )
    parser.add_argument(
        "path",
        help="binary XML file, or an APK/AAB archive containing AndroidManifest.xml",
    )
    parser.add_argument("-o", "--output", help="write the XML to this file instead of stdout")
    parser.add_argument("--pretty", action="store_true", help="indent the XML output")
    parser.add_argument("--entry", help="archive entry to decode (default: AndroidManifest.xml)")
    parser.add_argument(
        "--strings", action="store_true", help="print the string pool instead of the XML"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="more logging, repeat for debug output"
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser


def write_output(data: bytes, output: Union[str, None]) -> None:
    """
    Write to stdout, or atomically replace `output` with the data.
    """
    if output is None:
        sys.stdout.buffer.write(data)
        if not data.endswith(b"\n"):
            sys.stdout.buffer.write(b"\n")
        sys.stdout.flush()
        return

    target = Path(output)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=".{}.".format(target.name))
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
        os.replace(tmp, target)
    except BaseException:
        os.unlink(tmp)
        raise
    logger.info(f"Wrote {len(data)} bytes to {target}")


def main(argv: Union[List[str], None] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        raw = load_input(args.path, args.entry)
        document = decode(raw)
        if args.strings:
            document.strings.show()
            return 0
        xml = to_xml(document, pretty=args.pretty)
    except ResParserError as e:
        logger.error(f"Can not decode {args.path}: {e}")
        return 1
    except (OSError, zipfile.BadZipFile) as e:
        logger.error(f"Can not read {args.path}: {e}")
        return 1

    try:
        write_output(xml, args.output)
    except OSError as e:
        logger.error(f"Can not write {args.output}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
