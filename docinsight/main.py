#!/usr/bin/env python3
"""Command-line entry point for DocInsight.

Runs one session in the terminal:
- summarize a text file, a PDF or inline text
- print the rendered summary with flagged terms
- answer follow-up questions and define terms given on the command line
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from docinsight.config import AppConfig, load_config
from docinsight.error_handling import DocInsightError
from docinsight.logging_config import setup_logging
from docinsight.models import RenderedDocument, RenderedSpan
from docinsight.orchestrator import DocInsightOrchestrator


def format_spans(spans: List[RenderedSpan]) -> str:
    parts = []
    for span in spans:
        if span.treatment == "complex-term":
            parts.append(f"[{span.text}]")
        elif span.treatment == "emphasis":
            parts.append(span.text.upper())
        else:
            parts.append(span.text)
    return "".join(parts)


def format_document(document: RenderedDocument) -> str:
    """Terminal rendering: terms in brackets, emphasis upper-cased."""
    lines = []
    for block in document.blocks:
        if block.kind == "list":
            lines.extend(f"  - {format_spans(item)}" for item in block.items)
        else:
            lines.append(format_spans(block.spans).rstrip("\n"))
        lines.append("")
    return "\n".join(lines).rstrip()


async def run_session(orchestrator: DocInsightOrchestrator, args: argparse.Namespace) -> int:
    """Drive one session from parsed arguments.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if args.file:
        path = Path(args.file)
        if not path.exists():
            logger.error(f"File not found: {args.file}")
            return 1
        outcome = orchestrator.select_file(path.name, path.read_bytes())
    else:
        outcome = orchestrator.set_input(args.text)

    if outcome.status != "ok":
        print(f"Error: {outcome.message}", file=sys.stderr)
        return 1

    outcome = await orchestrator.summarize()
    if outcome.status != "ok":
        print(f"Error: {outcome.message}", file=sys.stderr)
        return 1

    document = orchestrator.render_summary()
    print(format_document(document))

    terms = document.complex_terms()
    if terms:
        print(f"\nFlagged terms: {', '.join(dict.fromkeys(terms))}")

    define_errors = []
    for term in args.define or []:
        outcome = await orchestrator.define(term)
        if outcome.status not in ("ok", "closed"):
            define_errors.append(f"{term}: {outcome.message}")
        definition = orchestrator.state.active_definition
        if definition is not None:
            print(f"\n{definition.term}: {definition.definition_text}")
        orchestrator.close_definition()

    for question in args.ask or []:
        await orchestrator.ask(question)

    if args.ask:
        print()
        for message in orchestrator.state.chat_history:
            speaker = "You" if message.role == "user" else "Assistant"
            print(f"{speaker}: {message.text}")

    for message in define_errors:
        print(f"\nError defining {message}", file=sys.stderr)
    if orchestrator.state.last_error:
        print(f"\nError: {orchestrator.state.last_error}", file=sys.stderr)
    if define_errors or orchestrator.state.last_error:
        return 1
    return 0


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="DocInsight - simplified summaries, term definitions and Q&A",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summarize a PDF
  python -m docinsight.main --file paper.pdf

  # Summarize text and ask a follow-up question
  python -m docinsight.main --text "..." --ask "What is the main idea?"

  # Define flagged terms after summarizing
  python -m docinsight.main --file notes.md --define photosynthesis
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--file",
        type=str,
        help="Document to summarize (.txt, .md, .json, .csv, .html or .pdf)"
    )
    source.add_argument(
        "--text",
        type=str,
        help="Document text to summarize"
    )

    parser.add_argument(
        "--ask",
        action="append",
        metavar="QUESTION",
        help="Follow-up question about the summary (repeatable)"
    )
    parser.add_argument(
        "--define",
        action="append",
        metavar="TERM",
        help="Term to define after summarizing (repeatable)"
    )
    parser.add_argument(
        "--model-name",
        type=str,
        default=None,
        help="Gemini model name (default: from GEMINI_MODEL or gemini-2.5-flash)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Console logging level (default: WARNING)"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for log files (default: console only)"
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    config = load_config()
    if args.model_name:
        config.client.model_name = args.model_name
    config.log_level = args.log_level
    config.log_dir = args.log_dir
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)
    config = build_config(args)
    setup_logging(log_dir=config.log_dir, level=config.log_level)

    try:
        orchestrator = DocInsightOrchestrator(config=config)
        return asyncio.run(run_session(orchestrator, args))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except DocInsightError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
