"""
CLI entry point for scriptdata.

Usage:
    scriptdata extract                 Extract all documents from the game script
    scriptdata locate <name>           Print one declaration (or --function) as extracted
    scriptdata assemble                Write the assembled script and check references
    scriptdata init-config [path]      Write a default scriptdata.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from scriptdata import __version__
from scriptdata.errors import (
    ConfigError,
    EvaluationError,
    EvaluationTimeoutError,
    ReferenceCheckError,
    SandboxWorkerError,
)

logger = logging.getLogger("scriptdata")


def _setup_logging(args) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)-7s %(message)s")


def _load_config(args):
    from .config import get_config

    config = get_config(Path(args.config) if args.config else None)
    return config.override(
        source_path=getattr(args, "source", None),
        output_dir=getattr(args, "output", None),
        strict_references=True if getattr(args, "strict_references", False) else None,
        eval_timeout_seconds=getattr(args, "timeout", None),
    )


def cmd_extract(args):
    """Run the full extraction pipeline."""
    from .pipeline import ExtractionPipeline

    try:
        config = _load_config(args)
        result = ExtractionPipeline(config).run()
    except FileNotFoundError as e:
        logger.error(f"Source not found: {e.filename}")
        return 1
    except (ConfigError, ReferenceCheckError) as e:
        logger.error(str(e))
        return 1
    except EvaluationError as e:
        logger.error(e.format_diagnostic())
        logger.error(f"Debug script written to {config.debug_artifact}")
        return 1
    except (EvaluationTimeoutError, SandboxWorkerError) as e:
        logger.error(str(e))
        logger.error(f"Debug script written to {config.debug_artifact}")
        return 1

    if result.warnings:
        logger.info(f"{result.warnings} warning(s) during extraction")
    return 0


def cmd_locate(args):
    """Print one extracted declaration or function."""
    from .parser import extract_declaration, extract_function
    from .pipeline import read_source

    try:
        config = _load_config(args)
        text = read_source(config.source_path)
    except FileNotFoundError as e:
        logger.error(f"Source not found: {e.filename}")
        return 1
    except ConfigError as e:
        logger.error(str(e))
        return 1

    locate = extract_function if args.function else extract_declaration
    fragment = locate(args.name, text)
    if fragment is None:
        kind = "function" if args.function else "declaration"
        logger.warning(f"Could not find {kind} {args.name}")
        return 1

    line = text.count('\n', 0, fragment.source_offset) + 1
    print(f"// {fragment.label} (line {line}, {len(fragment.code)} chars)")
    print(fragment.code)
    return 0


def cmd_assemble(args):
    """Write the assembled script without evaluating it."""
    from .pipeline import ExtractionPipeline, read_source
    from .sandbox.runtime import write_debug_artifact

    try:
        config = _load_config(args)
        text = read_source(config.source_path)
        pipeline = ExtractionPipeline(config)
        script, report = pipeline.assemble(text)
    except FileNotFoundError as e:
        logger.error(f"Source not found: {e.filename}")
        return 1
    except (ConfigError, ReferenceCheckError) as e:
        logger.error(str(e))
        return 1

    path = write_debug_artifact(config.debug_artifact, script.text)
    print(f"Assembled {len(script.fragments)} fragments -> {path}")
    for frag, start in zip(script.fragments, script.start_lines()):
        print(f"  {start:>6}  {frag.kind:<11} {frag.display_name}")
    if script.missing:
        print(f"Missing: {', '.join(script.missing)}")
    problems = report.problems()
    print(f"Reference check: {'ok' if not problems else f'{len(problems)} problem(s)'}")
    return 0 if not problems else 1


def cmd_init_config(args):
    """Write a default configuration file."""
    from .config import write_default_config

    path = write_default_config(Path(args.path) if args.path else None)
    print(f"Wrote {path}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Extract game data declarations from a script into JSON documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    scriptdata extract
    scriptdata extract --source ../RunEscape/js/game.js --output data
    scriptdata locate AREAS
    scriptdata locate computeEnemyStats --function
    scriptdata assemble --output /tmp/check
"""
    )
    parser.add_argument('--version', action='version', version=f'scriptdata {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Warnings and errors only')
    parser.add_argument('-c', '--config', help='YAML config file (default: ./scriptdata.yaml)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # extract
    extract_p = subparsers.add_parser('extract', help='Extract all data documents')
    extract_p.add_argument('-s', '--source', help='Game script path')
    extract_p.add_argument('-o', '--output', help='Output directory')
    extract_p.add_argument('-t', '--timeout', type=float, help='Sandbox budget in seconds')
    extract_p.add_argument('--strict-references', action='store_true',
                           help='Abort when the reference check finds problems')
    extract_p.set_defaults(func=cmd_extract)

    # locate
    locate_p = subparsers.add_parser('locate', help='Print one extracted declaration')
    locate_p.add_argument('name', help='Declaration or function name')
    locate_p.add_argument('-f', '--function', action='store_true', help='Locate a function')
    locate_p.add_argument('-s', '--source', help='Game script path')
    locate_p.set_defaults(func=cmd_locate)

    # assemble
    assemble_p = subparsers.add_parser('assemble', help='Write the assembled script only')
    assemble_p.add_argument('-s', '--source', help='Game script path')
    assemble_p.add_argument('-o', '--output', help='Output directory')
    assemble_p.set_defaults(func=cmd_assemble)

    # init-config
    init_p = subparsers.add_parser('init-config', help='Write a default config file')
    init_p.add_argument('path', nargs='?', help='Destination (default: ./scriptdata.yaml)')
    init_p.set_defaults(func=cmd_init_config)

    args = parser.parse_args(argv)
    _setup_logging(args)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
