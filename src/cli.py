"""Command-line interface for identity-document extraction.

Subcommands parse saved OCR text, read single documents, process folders
of scanned cards into a CSV, and benchmark the parser against labels.
Plain ``.txt`` files are treated as already-recognized text and skip OCR.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from src.benchmark.evaluator import Evaluator, load_ground_truth
from src.extraction.identity_parser import ExtractedIdentity, IdentityParser
from src.ocr.document_processor import DocumentProcessor
from src.utils.config import load_config
from src.utils.errors import RecognitionError
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.tiff",
    "*.tif",
    "*.webp",
    "*.pdf",
    "*.txt",
)
_CSV_COLUMNS = [
    "filename",
    "status",
    "name",
    "date_of_birth",
    "id_number",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of document paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _read_text(file_path: Path, processor: DocumentProcessor) -> str:
    """Return the recognized text of a document, running OCR unless it is ``.txt``."""
    if file_path.suffix.lower() == ".txt":
        return file_path.read_text(encoding="utf-8", errors="replace")
    return processor.process(file_path, file_path.name).combined_text


def parse_text_file(file_path: Path) -> dict[str, str]:
    """Parse a saved OCR text file.

    Args:
        file_path: Text file containing raw recognized text.

    Returns:
        Extracted identity fields.
    """
    text = file_path.read_text(encoding="utf-8", errors="replace")
    return IdentityParser().parse(text).to_dict()


def extract_single(file_path: Path) -> dict[str, object]:
    """OCR and parse a single document.

    Args:
        file_path: Image, PDF or text file.

    Returns:
        Dictionary with filename, extracted fields and raw text.
    """
    processor = DocumentProcessor(load_config())
    text = _read_text(file_path, processor)
    return {
        "filename": file_path.name,
        "fields": IdentityParser().parse(text).to_dict(),
        "raw_text": text,
    }


def process_folder(
    input_dir: Path, output_csv: Path, verbose: bool = False
) -> dict[str, int]:
    """Extract identity fields from every document in a folder into a CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    processor = DocumentProcessor(load_config())
    parser = IdentityParser()

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    rows: list[dict[str, object]] = []
    successful = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            identity = parser.parse(_read_text(file_path, processor))
        except (RecognitionError, OSError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            continue

        rows.append(
            {
                "filename": file_path.name,
                "status": "success",
                **identity.to_dict(),
                "processing_time_s": round(time.time() - start_time, 2),
                "error": None,
            }
        )
        successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(files),
        "successful": successful,
        "failed": len(files) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows to a CSV file with a fixed column order."""
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def evaluate_folder(
    input_dir: Path, ground_truth_path: Path, report_path: Path | None = None
) -> str:
    """Benchmark the parser on labelled documents.

    Args:
        input_dir: Directory holding the documents named in the labels.
        ground_truth_path: JSON or CSV label file.
        report_path: Optional file to write the report to.

    Returns:
        The formatted report.
    """
    labels = load_ground_truth(ground_truth_path)
    processor = DocumentProcessor(load_config())
    parser = IdentityParser()

    predictions: dict[str, ExtractedIdentity] = {}
    for filename in labels:
        file_path = input_dir / filename
        try:
            predictions[filename] = parser.parse(_read_text(file_path, processor))
        except (RecognitionError, OSError) as exc:
            logger.error("Skipping %s: %s", filename, exc)

    evaluator = Evaluator()
    return evaluator.generate_report(evaluator.evaluate(predictions, labels), report_path)


def _emit_json(payload: object, output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Identity document extraction tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse a saved OCR text file")
    parse_parser.add_argument("file", type=Path, help="Text file to parse")
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    single_parser = subparsers.add_parser("extract", help="OCR and parse one document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    eval_parser = subparsers.add_parser("evaluate", help="Benchmark against labels")
    eval_parser.add_argument("input_dir", type=Path, help="Directory of documents")
    eval_parser.add_argument("ground_truth", type=Path, help="JSON or CSV labels")
    eval_parser.add_argument("-o", "--output", type=Path, help="Report file")

    args = parser.parse_args(argv)

    setup_logging()

    if args.command in ("parse", "extract"):
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        if args.command == "parse":
            _emit_json(parse_text_file(args.file), args.output)
            return
        try:
            result = extract_single(args.file)
        except RecognitionError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        _emit_json(result, args.output)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.verbose)
    elif args.command == "evaluate":
        if not args.input_dir.is_dir() or not args.ground_truth.exists():
            print("Error: input directory and ground truth file must exist", file=sys.stderr)
            sys.exit(1)
        print(evaluate_folder(args.input_dir, args.ground_truth, args.output))
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
