"""Command-line interface for full-page OCR and template field extraction.

Provides an ``ocr`` subcommand that recognizes whole documents and an
``extract`` subcommand that reads template fields from a document. Both
emit JSON.
"""

import argparse
import json
import sys
from pathlib import Path

from fieldocr.errors import ExtractionTimeout, FieldOcrError
from fieldocr.extraction.template_extractor import TemplateExtractor
from fieldocr.extraction.templates import load_template
from fieldocr.ocr.base import UnifiedOCRResult
from fieldocr.ocr.document_processor import (
    DocumentProcessor,
    DocumentResult,
    DocumentSource,
    document_name,
    is_url,
)
from fieldocr.utils.config import AppConfig, load_config
from fieldocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _ocr_result_to_dict(result: UnifiedOCRResult) -> dict[str, object]:
    """Serialize a unified OCR result, keeping line and paragraph text.

    Args:
        result: OCR result for one page.

    Returns:
        JSON-compatible dictionary.
    """
    return {
        "text": result.text,
        "confidence": result.confidence,
        "engine": result.engine,
        "language": result.language,
        "geometry_source": result.geometry_source.value,
        "word_count": len(result.words),
        "lines": [line.text for line in result.lines],
        "paragraphs": [p.text for p in result.paragraphs],
    }


def _document_to_dict(doc: DocumentResult) -> dict[str, object]:
    return {
        "filename": doc.source_file,
        "page_count": doc.page_count,
        "pages": [
            {"page_number": p.page_number, **_ocr_result_to_dict(p.ocr_result)}
            for p in doc.pages
        ],
        "combined_text": doc.combined_text,
    }


def run_ocr(
    file_path: DocumentSource,
    config: AppConfig,
    language: str | None = None,
    preprocess: bool = True,
) -> dict[str, object]:
    """Run full-page OCR over a document.

    Args:
        file_path: Image or PDF to recognize, as a path or http(s) URL.
        config: Application configuration.
        language: OCR language code.
        preprocess: Whether to apply aggressive preprocessing.

    Returns:
        Per-page text and structure summaries.
    """
    processor = DocumentProcessor(config)
    doc = processor.process(file_path, document_name(file_path), language, preprocess)
    return _document_to_dict(doc)


def run_extract(
    template_path: Path,
    file_path: DocumentSource,
    config: AppConfig,
    language: str | None = None,
    aggressive: bool | None = None,
    timeout_s: float | None = None,
) -> dict[str, object]:
    """Extract template fields from a document.

    A timeout is not an error here: the partial result is returned with
    ``timed_out`` set.

    Args:
        template_path: Template YAML file.
        file_path: Image or PDF to extract from, as a path or http(s) URL.
        config: Application configuration.
        language: OCR language code.
        aggressive: Preprocessing profile override.
        timeout_s: Overall deadline in seconds.

    Returns:
        Serialized extraction result.
    """
    template = load_template(template_path)
    extractor = TemplateExtractor(config)
    try:
        result = extractor.extract_template(
            template, file_path, language, aggressive, timeout_s
        )
        timed_out = False
    except ExtractionTimeout as exc:
        logger.warning("%s", exc)
        result = exc.partial
        timed_out = True

    output = result.to_dict()
    output["filename"] = document_name(file_path)
    output["timed_out"] = timed_out
    return output


def _emit(payload: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Template field OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, help="Configuration YAML (default: configs/)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ocr_parser = subparsers.add_parser("ocr", help="Recognize a whole document")
    ocr_parser.add_argument("file", help="Document file or http(s) URL")
    ocr_parser.add_argument("--lang", help="OCR language code (default: eng)")
    ocr_parser.add_argument(
        "--no-preprocess", action="store_true", help="Skip image preprocessing"
    )
    ocr_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    extract_parser = subparsers.add_parser(
        "extract", help="Extract template fields from a document"
    )
    extract_parser.add_argument("template", type=Path, help="Template YAML file")
    extract_parser.add_argument("file", help="Document file or http(s) URL")
    extract_parser.add_argument("--lang", help="OCR language code (default: eng)")
    extract_parser.add_argument(
        "--light", action="store_true", help="Use light preprocessing"
    )
    extract_parser.add_argument(
        "--timeout", type=float, help="Overall deadline in seconds"
    )
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    # stdout carries the JSON payload
    setup_logging(config.log_level, stream=sys.stderr)

    source = args.file if is_url(args.file) else Path(args.file)
    if isinstance(source, Path) and not source.exists():
        print(f"Error: {source} does not exist", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "ocr":
            payload = run_ocr(source, config, args.lang, not args.no_preprocess)
        else:
            payload = run_extract(
                args.template,
                source,
                config,
                args.lang,
                False if args.light else None,
                args.timeout,
            )
    except (FieldOcrError, OSError) as exc:
        logger.error("Failed to process %s: %s", document_name(source), exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    _emit(payload, args.output)


if __name__ == "__main__":
    main()
