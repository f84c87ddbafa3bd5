"""
CLI entry point for rmscheck.

Usage:
    rmscheck check <file>...           Check random map scripts for problems
    rmscheck parse <file>              Show the atoms a script parses into
    rmscheck fix <file>                Apply suggested fixes to a script
    rmscheck format <file>             Reformat a script

Exit codes: 0 if no problems were found, 1 if there were, 2 on usage,
configuration or file errors.
"""

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path

from rmscheck import __version__
from rmscheck.config import CheckConfig, ConfigError
from rmscheck.sources import encode_script, read_script

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROBLEMS = 1
EXIT_FAILURE = 2


def _load_config(args) -> CheckConfig:
    config = CheckConfig(Path(args.config) if args.config else None)
    if args.compatibility:
        config.override("compatibility", args.compatibility)
    return config


def _build_check(args, config: CheckConfig):
    from rmscheck.check import RMSCheck
    from rmscheck.lints import create_lints

    return RMSCheck(config.compatibility, create_lints(config.lints), is_builtin_map=args.builtin)


def cmd_check(args):
    """Check one or more files."""
    config = _load_config(args)
    checker = _build_check(args, config)
    for name in args.files:
        checker.add_file(name)

    result = checker.check()

    if args.json:
        print(json.dumps({
            "files": [source.name for source in result.files],
            "warnings": [result.to_dict(warning) for warning in result],
        }, indent=2))
    else:
        for warning in result:
            print(result.format(warning))
        if result.has_warnings:
            errors = sum(1 for warning in result if warning.is_error)
            print(f"\n{len(result)} problems found ({errors} errors)")

    return EXIT_PROBLEMS if result.has_warnings else EXIT_OK


def cmd_parse(args):
    """Parse a file and show its atoms."""
    from rmscheck.parser import Parser

    source = Path(args.file).read_bytes().decode("utf-8", errors="replace")
    items = list(Parser(0, source))

    if args.json:
        print(json.dumps([
            {"atom": atom.to_dict(), "errors": [error.to_dict() for error in errors]}
            for atom, errors in items
        ], indent=2))
    else:
        for atom, errors in items:
            print(f"{atom.start}..{atom.end} {atom}")
            for error in errors:
                print(f"    ! {error.message}")

    return EXIT_PROBLEMS if any(errors for _, errors in items) else EXIT_OK


def _print_script(text: str) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(encode_script(text))
    sys.stdout.buffer.flush()


def _write_script(path: Path, text: str, backup: bool) -> None:
    """Write atomically, keeping the previous contents in `<file>.bak`."""
    data = encode_script(text)
    if backup:
        shutil.copy2(path, path.with_name(path.name + ".bak"))
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)


def cmd_fix(args):
    """Apply suggested fixes to a file."""
    from rmscheck.fix import apply_fixes

    config = _load_config(args)
    path = Path(args.file)
    source = read_script(path)

    checker = _build_check(args, config).add_source(str(path), source)
    result = checker.check()
    unsafe = args.unsafe or config.fix_unsafe
    fixed, applied = apply_fixes(source, result, unsafe=unsafe, file_id=0)

    source_file = result.files[0]
    for suggestion in applied:
        start = source_file.location(suggestion.start)
        end = source_file.location(suggestion.end)
        prefix = "UNSAFE autofix" if not suggestion.replacement.is_fixable else "autofix"
        print(f"{prefix} {start[0] + 1}:{start[1] + 1} -> {end[0] + 1}:{end[1] + 1} "
              f"to {suggestion.replacement.text}", file=sys.stderr)

    if args.dry_run:
        _print_script(fixed)
    elif applied:
        _write_script(path, fixed, backup=not args.no_backup)
        logger.info(f"Applied {len(applied)} fixes to {path}")

    # Report what is left
    remaining = _build_check(args, config).add_source(str(path), fixed).check()
    for warning in remaining:
        print(remaining.format(warning), file=sys.stderr)
    return EXIT_PROBLEMS if remaining.has_warnings else EXIT_OK


def cmd_format(args):
    """Format a script file."""
    from rmscheck.format import RMSFormatter

    config = CheckConfig(Path(args.config) if args.config else None)
    options = config.format_options
    if args.tab_size is not None:
        options.tab_size = args.tab_size
    if args.tabs:
        options.use_spaces = False
    if args.no_align:
        options.align_arguments = False

    path = Path(args.file)
    source = read_script(path)
    result = RMSFormatter(options).format_string(source)

    if args.check:
        if result == source:
            print(f"{path} is formatted")
            return EXIT_OK
        print(f"{path} needs formatting")
        return EXIT_PROBLEMS

    if args.inplace:
        if result != source:
            _write_script(path, result, backup=False)
        print(f"Formatted: {path}")
    else:
        _print_script(result)
    return EXIT_OK


def _add_check_options(parser):
    parser.add_argument('-c', '--compatibility', help='Target game version, e.g. "up 1.5" or "de"')
    parser.add_argument('--config', help='Path to a YAML config file')
    parser.add_argument('--builtin', action='store_true', help='Treat the script as a builtin map')


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='rmscheck',
        description='Static checker for Age of Empires II random map scripts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--version', action='version', version=f'rmscheck {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # check
    check_p = subparsers.add_parser('check', help='Check script files')
    check_p.add_argument('files', nargs='+', help='Files to check')
    check_p.add_argument('--json', action='store_true', help='Output JSON')
    _add_check_options(check_p)
    check_p.set_defaults(func=cmd_check)

    # parse
    parse_p = subparsers.add_parser('parse', help='Show the atoms of a script file')
    parse_p.add_argument('file', help='File to parse')
    parse_p.add_argument('--json', action='store_true', help='Output JSON')
    parse_p.set_defaults(func=cmd_parse)

    # fix
    fix_p = subparsers.add_parser('fix', help='Apply suggested fixes')
    fix_p.add_argument('file', help='File to fix')
    fix_p.add_argument('--dry-run', action='store_true', help='Print the fixed script instead of writing it')
    fix_p.add_argument('--unsafe', action='store_true', help='Also apply fixes that may break your map')
    fix_p.add_argument('--no-backup', action='store_true', help='Do not keep the original as <file>.bak')
    _add_check_options(fix_p)
    fix_p.set_defaults(func=cmd_fix)

    # format
    format_p = subparsers.add_parser('format', help='Format a script file')
    format_p.add_argument('file', help='File to format')
    format_p.add_argument('-i', '--inplace', action='store_true', help='Modify in place')
    format_p.add_argument('--check', action='store_true', help='Only check if the file is formatted (exit 1 if not)')
    format_p.add_argument('--tab-size', type=int, help='Spaces per indent level')
    format_p.add_argument('--tabs', action='store_true', help='Indent with tabs')
    format_p.add_argument('--no-align', action='store_true', help='Do not line up command arguments')
    format_p.add_argument('--config', help='Path to a YAML config file')
    format_p.set_defaults(func=cmd_format)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        return args.func(args)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
