"""CLI entrypoints for documentor commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging, get_logger, progress_to_log
from .models import CodebaseAnalysis
from .orchestrator import Orchestrator
from .stores import DocumentationStoreError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _add_output_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Directory for documentation.json (defaults to output_dir in .documentor.yml, then docs/).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="documentor",
        description="Generate structured documentation from static analysis of a codebase.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Analyze the project and write documentation.json.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_output_option(generate_parser)
    generate_parser.add_argument(
        "--force",
        action="store_true",
        help="Regenerate even when a documentation artifact already exists.",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print the structural analysis without writing documentation.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the full analysis as JSON.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the documentation over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_path_argument(serve_parser)
    _add_output_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for documentor commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    progress = progress_to_log(get_logger("cli"))

    if args.command == "generate":
        orchestrator = Orchestrator(args.path, output_dir=args.output)
        try:
            if args.force:
                documentation = orchestrator.regenerate(progress)
            else:
                documentation = orchestrator.load_or_generate(progress)
            artifact = orchestrator.config().documentation_path
        except (ConfigError, DocumentationStoreError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"documentor generate failed: {exc}\n")
        print(
            f"Documentation ({len(documentation.api_documentation)} endpoints, "
            f"{len(documentation.frontend.components)} components) at {_relativize(artifact)}"
        )
    elif args.command == "analyze":
        orchestrator = Orchestrator(args.path)
        try:
            analysis = orchestrator.analyze(progress)
        except (ConfigError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"documentor analyze failed: {exc}\n")
        if args.json:
            print(json.dumps(analysis.to_dict(), indent=2, sort_keys=True))
        else:
            print(_summarize(analysis))
    elif args.command == "serve":
        from .service.app import run_service

        run_service(args.path, host=args.host, port=args.port, output_dir=args.output)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _summarize(analysis: CodebaseAnalysis) -> str:
    lines = [
        f"Project: {analysis.project_name}",
        f"Files: {len(analysis.files)}",
        f"Routes: {len(analysis.routes)}",
        f"Components: {len(analysis.components)}",
        f"Queries: {len(analysis.queries)}",
    ]
    if analysis.frameworks:
        lines.append("Frameworks: " + ", ".join(analysis.frameworks))
    for route in analysis.routes:
        lines.append(f"  {route.method} {route.path} -> {route.handler} ({route.file})")
    for warning in analysis.warnings:
        lines.append(f"Warning: {warning}")
    return "\n".join(lines)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
