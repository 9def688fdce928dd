"""CLI entry point for statement extraction."""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from .core.exceptions import FinStatementError
from .infrastructure.logger import get_logger, setup_logging

logger = get_logger("finstatement.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finstatement",
        description="Extract a financial statement from a parsed filing",
    )
    parser.add_argument("elements", help="unstructured.io JSON export of the filing")
    parser.add_argument("--company", required=True, help="Company name (e.g. Robinhood)")
    parser.add_argument("--report-type", required=True, help="Statement to extract (e.g. 'Balance Sheet')")
    parser.add_argument("--doc-type", required=True, help="Document type (e.g. 10-Q)")
    parser.add_argument(
        "--doc-name", help="Document name (default: filename recorded in the elements, else the JSON file name)"
    )
    parser.add_argument("--top-k", type=int, help="Candidates to retrieve (default: from settings)")
    parser.add_argument("--output", "-o", help="Write the result to this file instead of stdout")
    parser.add_argument("--show-original", action="store_true", help="Also print the original markup")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from .documents.loader import load_elements
    from .infrastructure.config import get_config, get_settings
    from .infrastructure.tracing import init_tracing
    from .pipeline.orchestrator import run_pipeline

    setup_logging(log_level=args.log_level or get_settings().logging.level)

    try:
        elements = load_elements(args.elements)
        doc_name = args.doc_name or next(
            (e.source_name for e in elements if e.source_name), Path(args.elements).name
        )
        config = {
            "docName": doc_name,
            "companyName": args.company,
            "docType": args.doc_type,
            "reportType": args.report_type,
        }

        settings = get_settings()
        if args.top_k is not None:
            settings = settings.model_copy(
                update={"vector_index": settings.vector_index.model_copy(update={"top_k": args.top_k})}
            )
        get_config().require_valid(settings)
        init_tracing(settings.tracing)

        result = run_pipeline(elements, config, settings=settings)

        if args.json:
            rendered = result.model_dump_json(indent=2)
        elif args.show_original:
            rendered = (
                f"{'=' * 80}\nOriginal content:\n{'-' * 80}\n{result.original_content}\n\n"
                f"{'=' * 80}\nReformatted content:\n{'-' * 80}\n{result.reformatted_content}\n"
            )
        else:
            rendered = result.reformatted_content

        if args.output:
            Path(args.output).write_text(rendered, encoding="utf-8")
            print(f"Saved to {args.output}")
        else:
            print(rendered)
        return 0

    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except FinStatementError as e:
        logger.error(f"Extraction failed: {e}")
        print(f"\nError ({type(e).__name__}): {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Fatal: {e}", exc_info=True)
        print(f"\nError: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
