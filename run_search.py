#!/usr/bin/env python3
"""
Command-line search over a Doxygen XML output directory.

Parses the directory, loads the extracted entities into the selected search
engine and prints the ranked matches.

Usage:
    python run_search.py Widget --path docs/xml
    python run_search.py draw --type method --namespace ns --format json
    python run_search.py widgt --engine fuzzy --report-dir output/run_reports

Exit codes:
    0  search completed (also when nothing matched)
    1  invalid arguments or configuration
    2  the Doxygen directory could not be parsed
"""

import argparse
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from core.run_artifacts import write_run_report
from core.settings import (
    VALID_ENGINES,
    VALID_OUTPUT_FORMATS,
    ConfigValidationError,
    Settings,
    resolve_settings,
)
from core.structured_logging import (
    PHASE_SEARCH,
    configure_structured_logging,
    phase_scope,
    phase_timings,
    set_run_id,
)
from extraction.config import ENTITY_KINDS
from extraction.errors import ExtractionError
from extraction.extractor import ParseOptions, parse_doxygen_dir
from search.engines import create_engine
from search.errors import SearchError
from search.formatters import create_formatter
from search.models import SearchQuery
from search.scoring import suggest_names

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_PARSE_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Flags left unset are ``None`` so that config-file and environment
    values are not overridden.
    """
    parser = argparse.ArgumentParser(
        description="Search classes, functions, namespaces and enums in Doxygen XML output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python run_search.py Widget --path docs/xml\n"
            "  python run_search.py widgt --engine fuzzy --format json\n"
        ),
    )
    parser.add_argument("query", help="Search term.")
    parser.add_argument("--path", help="Doxygen XML output directory (default: ./xml).")
    parser.add_argument("--config", help="YAML config file (default: .doxysearch.yml).")
    parser.add_argument("--engine", choices=VALID_ENGINES, help="Search engine.")
    parser.add_argument(
        "--type",
        dest="types",
        action="append",
        choices=sorted(ENTITY_KINDS),
        help="Restrict results to an entity kind; may be repeated.",
    )
    parser.add_argument(
        "--exact", action="store_true", default=None, help="Exact matches only."
    )
    parser.add_argument(
        "--case-sensitive", action="store_true", default=None, help="Match case."
    )
    parser.add_argument("--limit", type=int, help="Maximum number of results.")
    parser.add_argument("--namespace", help="Only entities inside this namespace.")
    parser.add_argument("--file-pattern", help="Only entities whose file matches this glob.")
    parser.add_argument("--format", choices=VALID_OUTPUT_FORMATS, help="Output format.")
    parser.add_argument(
        "--include-private",
        action="store_true",
        default=None,
        help="Also index private members.",
    )
    parser.add_argument(
        "--report-dir", help="Write a JSON run report (parse errors, stats) here."
    )
    parser.add_argument(
        "--verbose", action="store_true", default=None, help="Debug logging."
    )
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    return resolve_settings(
        config_path=args.config,
        overrides={
            "doxygen_path": args.path,
            "engine": args.engine,
            "exact_match": args.exact,
            "case_sensitive": args.case_sensitive,
            "default_limit": args.limit,
            "output_format": args.format,
            "include_private": args.include_private,
            "verbose": args.verbose,
        },
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run one search and print the results.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    configure_structured_logging(logging.DEBUG if args.verbose else logging.WARNING)
    run_id = set_run_id()

    try:
        settings = settings_from_args(args)
    except ConfigValidationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    if settings.verbose:
        configure_structured_logging(logging.DEBUG)
    logger.debug("Resolved settings: %s", settings.to_dict())

    try:
        result = parse_doxygen_dir(
            settings.doxygen_path,
            ParseOptions(include_private=settings.include_private),
        )
    except ExtractionError as e:
        logger.error("Cannot parse %s: %s", settings.doxygen_path, e)
        return EXIT_PARSE_ERROR

    for error in result.errors:
        logger.debug("[%s] %s: %s", error.severity, error.file, error.message)

    try:
        engine = create_engine(
            settings.engine,
            case_sensitive=settings.case_sensitive,
            exact_match=settings.exact_match,
            max_results=settings.default_limit,
            fuzzy_threshold=settings.fuzzy_threshold,
        )
        query = SearchQuery(
            term=args.query,
            entity_types=args.types,
            namespace=args.namespace,
            file_pattern=args.file_pattern,
        )
        with phase_scope(PHASE_SEARCH):
            engine.load_entities(result.entities)
            outcome = engine.search(query)
        formatter_kwargs = {}
        if not outcome.results and settings.output_format == "text":
            formatter_kwargs["suggestions"] = suggest_names(args.query, result.entities)
        formatter = create_formatter(settings.output_format, **formatter_kwargs)
    except (SearchError, ValueError) as e:
        logger.error("Search error: %s", e)
        return EXIT_CONFIG_ERROR

    print(formatter.format(outcome))

    if args.report_dir:
        path = write_run_report(
            {
                "query": args.query,
                "engine": settings.engine,
                "doxygen_path": settings.doxygen_path,
                "metadata": asdict(result.metadata),
                "errors": [asdict(e) for e in result.errors],
                "stats": asdict(outcome.stats),
                "phase_timings_ms": phase_timings(),
            },
            run_id,
            kind="search",
            output_dir=args.report_dir,
        )
        logger.info("Run report written to %s", path)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
