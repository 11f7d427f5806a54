import argparse
import re
import sys
from typing import Any, Dict, List, Optional, Tuple

from creatable.outputs.template_renderer import SEARCH_PATH_ENV, write_outputs
from creatable.router import route
from creatable.utils.exceptions import UsageError

PROPERTY_PATTERN = re.compile(r"\A([-\w]+)=(.*)\Z", re.DOTALL)


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"


def cprint(text: str, color: str = C.RESET, bold: bool = False):
    prefix = (C.BOLD if bold else "") + color
    if sys.stderr.isatty():
        print(f"{prefix}{text}{C.RESET}", file=sys.stderr)
    else:
        print(text, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="creatable",
        description="Read table definitions, check and manipulate them, "
        "and generate output with a template.",
        epilog=f"Extra '--key=value' (or '--key') arguments are passed to the "
        f"template as properties. Templates are searched in ${SEARCH_PATH_ENV}.",
        allow_abbrev=False,
    )
    parser.add_argument("-f", dest="template", metavar="template", help="template file name")
    parser.add_argument("-m", dest="multiple", action="store_true", help="multiple output files")
    parser.add_argument("-d", dest="directory", metavar="directory", help="output directory (with -m)")
    parser.add_argument("datafiles", nargs="*", help="table definition files (default: stdin)")
    return parser


def parse_properties(extras: List[str]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Split leftover arguments into template properties and data files.
    """
    properties: Dict[str, Any] = {}
    datafiles: List[str] = []
    for arg in extras:
        if arg.startswith("--") and len(arg) > 2:
            param = arg[2:]
            m = PROPERTY_PATTERN.match(param)
            if m:
                properties[m.group(1)] = m.group(2)
            else:
                properties[param] = True
        elif arg.startswith("-"):
            raise UsageError(f"{arg}: invalid command option.")
        else:
            datafiles.append(arg)
    return properties, datafiles


def parse_args(argv: Optional[List[str]] = None) -> Tuple[argparse.Namespace, Dict[str, Any]]:
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    properties, datafiles = parse_properties(extras)
    args.datafiles = list(args.datafiles) + datafiles
    if not args.template:
        raise UsageError("template is not specified.")
    return args, properties


def execute(argv: Optional[List[str]] = None) -> Optional[str]:
    """
    Run creatable for argv. Returns the output in single mode, None when
    files were written (-m).
    """
    args, properties = parse_args(argv)
    response = route({
        "template": args.template,
        "definition_paths": args.datafiles,
        "properties": properties,
        "multiple": args.multiple,
        "output_dir": args.directory,
    })
    if args.multiple:
        write_outputs(response["outputs"])
        return None
    return response["output"]


def main(argv: Optional[List[str]] = None):
    try:
        output = execute(argv)
    except Exception as e:
        cprint("[FAILED] creatable failed.", C.RED, bold=True)
        cprint(str(e), C.RED)
        raise SystemExit(1)

    if output:
        sys.stdout.write(output)


if __name__ == "__main__":
    main()
