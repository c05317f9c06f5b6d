"""Main CLI entry point for depview."""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .commands.compare import show_comparison
from .commands.stats import show_stats
from .commands.validate import validate_report
from .errors import DepviewError, NoTreeFound, UpstreamCommandFailure
from .formatters import OutputFormatter
from .models import TreeParseResult
from .parsers import MavenTreeParser

logger = logging.getLogger(__name__)

LOG_LEVELS = ['TRACE', 'DEBUG', 'INFO', 'WARN', 'ERROR']


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = getattr(logging, log_level.upper(), None)
        if level is None:
            # TRACE/WARN are accepted for parity with Maven's own flags
            level = {'TRACE': logging.DEBUG, 'WARN': logging.WARNING}.get(log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def read_input(path: str) -> str:
    """Read captured Maven output from a file, or from stdin when path is '-'."""
    if path == '-':
        logger.info("Reading Maven output from stdin")
        return sys.stdin.read()
    logger.info(f"Reading Maven output from file: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def load_tree(path: str, exit_code: int = 0) -> TreeParseResult:
    """Read and parse one report, warning about lines that had to be replaced by placeholders."""
    result = MavenTreeParser.parse_command_output(read_input(path), exit_code)
    if result.malformed_lines:
        print(
            f"Warning: {len(result.malformed_lines)} line(s) in {path} could not be read "
            f"and were replaced by unknown:unknown:unknown",
            file=sys.stderr
        )
    return result


def handle_print(args):
    """Handle the 'print' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    try:
        result = load_tree(args.input, args.exit_code)
    except UpstreamCommandFailure as e:
        logger.error(f"Maven command failed with exit code {e.exit_code}")
        print(f"Maven command failed with exit code {e.exit_code}:", file=sys.stderr)
        print(e.output, file=sys.stderr, end='')
        return 1
    except NoTreeFound:
        logger.error("No dependency tree found in input")
        print("Could not find dependency tree in Maven output. "
              "Run 'mvn dependency:tree -Dverbose=true' and capture its output.", file=sys.stderr)
        return 1
    except (DepviewError, OSError) as e:
        logger.error(f"Error parsing input: {e}")
        print(f"Error parsing input: {e}", file=sys.stderr)
        return 1

    root = result.root
    try:
        if args.output_format == 'maven':
            output = OutputFormatter.format_as_maven_tree(root)
        elif args.output_format == 'json':
            output = OutputFormatter.format_as_json(root)
        elif args.output_format == 'list':
            output = OutputFormatter.format_as_list(root)
        elif args.output_format == 'sbom':
            output = OutputFormatter.format_as_sbom(root)
        else:
            output = OutputFormatter.format_as_tree(root)
    except Exception as e:
        logger.error(f"Error generating output: {e}")
        print(f"Error generating output: {e}", file=sys.stderr)
        return 1

    try:
        if args.output == '-':
            print(output, end='')
        else:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
            logger.info(f"Output written to: {args.output}")
            print(f"Output written to: {args.output}")
    except OSError as e:
        logger.error(f"Error writing output: {e}")
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    return 0


def handle_stats(args):
    """Handle the 'stats' subcommand."""
    setup_logging(args.verbose, args.loglevel)
    try:
        result = load_tree(args.input)
    except (DepviewError, OSError) as e:
        logger.error(f"Error parsing input: {e}")
        print(f"Error parsing input: {e}", file=sys.stderr)
        return 1

    show_stats(result.root)
    return 0


def handle_validate(args):
    """Handle the 'validate' subcommand."""
    setup_logging(args.verbose, args.loglevel)
    try:
        text = read_input(args.input)
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1
    return 0 if validate_report(text, args.input, args.exit_code) else 1


def handle_compare(args):
    """Handle the 'compare' subcommand."""
    setup_logging(args.verbose, args.loglevel)
    try:
        first = load_tree(args.first)
        second = load_tree(args.second)
    except (DepviewError, OSError) as e:
        logger.error(f"Error parsing input: {e}")
        print(f"Error parsing input: {e}", file=sys.stderr)
        return 1

    show_comparison(first.root, second.root, args.first, args.second, args.include_omitted)
    return 0


def _add_logging_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose logging')
    parser.add_argument('--loglevel', choices=LOG_LEVELS, help='Set log level')


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog='depview',
        description='Decode Maven verbose dependency:tree output into an annotated dependency tree'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    print_parser = subparsers.add_parser('print', help='Parse a dependency:tree report and print it')
    print_parser.add_argument('input', help="Captured 'mvn dependency:tree -Dverbose=true' output (- for stdin)")
    print_parser.add_argument('output', nargs='?', default='-',
                              help='Output file (default: stdout, use - for stdout)')
    print_parser.add_argument('--format', dest='output_format', default='tree',
                              choices=['tree', 'maven', 'json', 'list', 'sbom'],
                              help='Output format (tree, maven, json, list, sbom). Default: tree')
    print_parser.add_argument('--exit-code', type=int, default=0,
                              help='Exit status of the Maven run that produced the input; non-zero aborts')
    _add_logging_flags(print_parser)
    print_parser.set_defaults(func=handle_print)

    stats_parser = subparsers.add_parser('stats', help='Show dependency counts by scope')
    stats_parser.add_argument('input', help='Captured dependency:tree output (- for stdin)')
    _add_logging_flags(stats_parser)
    stats_parser.set_defaults(func=handle_stats)

    validate_parser = subparsers.add_parser('validate', help='Check that a report decodes without problems')
    validate_parser.add_argument('input', help='Captured dependency:tree output (- for stdin)')
    validate_parser.add_argument('--exit-code', type=int, default=0,
                                 help='Exit status of the Maven run that produced the input')
    _add_logging_flags(validate_parser)
    validate_parser.set_defaults(func=handle_validate)

    compare_parser = subparsers.add_parser('compare', help='Compare the artifacts of two reports')
    compare_parser.add_argument('first', help='First captured dependency:tree output')
    compare_parser.add_argument('second', help='Second captured dependency:tree output')
    compare_parser.add_argument('--include-omitted', action='store_true',
                                help='Also compare omitted candidate versions')
    _add_logging_flags(compare_parser)
    compare_parser.set_defaults(func=handle_compare)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
