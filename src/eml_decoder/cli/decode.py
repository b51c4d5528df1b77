"""
Command-line interface for EML decoding.

Decodes .eml files and prints a JSON summary of each message (headers,
addresses, MIME part tree), or the human-readable debug dump.

Usage:
    # Single file
    eml-decode input.eml

    # Directory, one JSON object per line, saved to a file
    eml-decode emails/ --output results.jsonl

    # Debug dump instead of JSON
    eml-decode input.eml --debug

    # Save named attachments
    eml-decode input.eml --extract attachments/
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple
import structlog

from eml_decoder.eml_file import EmlFile
from eml_decoder.errors import InvalidEncodingError
from eml_decoder.logging_config import setup_logging
from eml_decoder.summary import summarize_message


# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


class DecodeFailedError(Exception):
    """A file could not be decoded."""


# ============================================================================
# CLI FUNCTIONS
# ============================================================================

def extract_parts(eml: EmlFile, extract_dir: Path) -> List[Path]:
    """
    Write the decoded bytes of every named leaf part to a directory.

    Parts without a ``name`` parameter are skipped, as are parts whose
    content cannot be decoded. A name that is already taken gets the part
    path as prefix.

    Args:
        eml: Decoded message
        extract_dir: Target directory (created if missing)

    Returns:
        Paths of the written files
    """
    extract_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for index, part in enumerate(eml.walk(), 1):
        name = part.get_content_name()
        if not name or part.is_multipart():
            continue

        try:
            data = part.get_content_bytes()
        except InvalidEncodingError as e:
            logger.warning("part_extract_failed", name=name, error=str(e))
            continue

        # Never write outside extract_dir
        safe_name = Path(name.replace("\\", "/")).name or f"part-{index}"
        target = extract_dir / safe_name
        if target.exists():
            target = extract_dir / f"{index}_{safe_name}"

        target.write_bytes(data)
        written.append(target)
        logger.info("part_extracted", path=str(target), size_bytes=len(data))

    return written


def process_single_file(
    eml_path: Path,
    debug: bool = False,
    include_content: bool = False,
    extract_dir: Optional[Path] = None,
    verbose: bool = False
):
    """
    Decode a single .eml file.

    Args:
        eml_path: Path to .eml file
        debug: Return the debug dump instead of the summary
        include_content: Include decoded text of text parts in the summary
        extract_dir: Directory to write named parts to
        verbose: Enable verbose output

    Returns:
        Summary as dict, or the debug dump as str

    Raises:
        DecodeFailedError: If the message could not be decoded
    """
    if verbose:
        logger.info("processing_file", path=str(eml_path))

    with EmlFile(str(eml_path)) as eml:
        if not eml.decode():
            raise DecodeFailedError(f"Failed to decode {eml_path}")

        if verbose:
            logger.info(
                "file_decoded",
                subject=eml.header_value("subject"),
                parts_count=len(eml.parts),
            )

        if extract_dir is not None:
            extract_parts(eml, extract_dir)

        if debug:
            return eml.to_debug_string()
        return summarize_message(eml, include_content=include_content).model_dump(mode="json")


def process_directory(
    dir_path: Path,
    debug: bool = False,
    include_content: bool = False,
    extract_dir: Optional[Path] = None,
    verbose: bool = False
) -> Tuple[list, List[dict]]:
    """
    Decode all .eml files in a directory, recursively.

    Args:
        dir_path: Directory path
        debug: Return debug dumps instead of summaries
        include_content: Include decoded text of text parts in summaries
        extract_dir: Directory to write named parts to
        verbose: Enable verbose output

    Returns:
        Tuple of (results, errors)
    """
    eml_files = sorted(dir_path.glob("**/*.eml"))

    if not eml_files:
        logger.warning("no_eml_files_found", directory=str(dir_path))
        return [], []

    logger.info("processing_directory", files_count=len(eml_files))

    results = []
    errors = []

    for idx, eml_file in enumerate(eml_files, 1):
        try:
            if verbose:
                print(f"[{idx}/{len(eml_files)}] Processing {eml_file.name}...", file=sys.stderr)

            result = process_single_file(
                eml_path=eml_file,
                debug=debug,
                include_content=include_content,
                extract_dir=extract_dir,
                verbose=verbose
            )

            results.append(result)

        except Exception as e:
            logger.error("file_processing_failed", file=str(eml_file), error=str(e))
            errors.append({
                "file": str(eml_file),
                "error": str(e)
            })

    logger.info(
        "directory_processing_completed",
        total=len(eml_files),
        success=len(results),
        errors=len(errors)
    )

    return results, errors


def write_output(results: list, output_path: Optional[Path], format: str = "json"):
    """
    Write results to a file or stdout.

    Debug dumps (strings) are written as plain text, one after the other.

    Args:
        results: Summaries (dicts) or debug dumps (strs)
        output_path: Output file path, None for stdout
        format: Output format for summaries ("json" or "jsonl")
    """
    if results and isinstance(results[0], str):
        text = "\n".join(results)
    elif format == "jsonl":
        text = "".join(json.dumps(result, ensure_ascii=False) + "\n" for result in results)
    else:
        payload = results[0] if len(results) == 1 else results
        text = json.dumps(payload, ensure_ascii=False, indent=2) + "\n"

    if not output_path:
        sys.stdout.write(text)
        return

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)

    logger.info("output_written", path=str(output_path), count=len(results))


# ============================================================================
# MAIN CLI
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eml-decode",
        description="EML Decoder CLI - Decode .eml files into headers and MIME parts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single file, JSON summary on stdout
  %(prog)s input.eml

  # Include decoded text of text parts
  %(prog)s input.eml --include-content

  # Process directory, save to file
  %(prog)s emails/ --output results.jsonl

  # Human-readable dump
  %(prog)s input.eml --debug

  # Save named attachments
  %(prog)s input.eml --extract attachments/
        """
    )

    parser.add_argument(
        "input",
        type=str,
        help="Path to .eml file or directory containing .eml files"
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Output file path (default: stdout). A .jsonl extension selects jsonl format"
    )

    parser.add_argument(
        "--format",
        "-f",
        type=str,
        choices=["json", "jsonl"],
        default="json",
        help="Output format (default: json)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print the human-readable debug dump instead of JSON"
    )

    parser.add_argument(
        "--extract",
        "-x",
        type=str,
        default=None,
        metavar="DIR",
        help="Write decoded named parts (attachments) to DIR"
    )

    parser.add_argument(
        "--include-content",
        action="store_true",
        help="Include decoded text of text parts in the summary"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        setup_logging(level="DEBUG")

    input_path = Path(args.input)

    if not input_path.exists():
        print(f"Error: Path not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    extract_dir = Path(args.extract) if args.extract else None
    errors = []

    try:
        if input_path.is_file():
            result = process_single_file(
                eml_path=input_path,
                debug=args.debug,
                include_content=args.include_content,
                extract_dir=extract_dir,
                verbose=args.verbose
            )
            results = [result]

        elif input_path.is_dir():
            results, errors = process_directory(
                dir_path=input_path,
                debug=args.debug,
                include_content=args.include_content,
                extract_dir=extract_dir,
                verbose=args.verbose
            )

        else:
            print(f"Error: Invalid input path: {input_path}", file=sys.stderr)
            sys.exit(1)

        output_path = Path(args.output) if args.output else None

        # Auto-detect format from file extension
        if output_path and output_path.suffix == ".jsonl":
            format = "jsonl"
        else:
            format = args.format

        if results:
            write_output(results, output_path, format)

        if args.verbose:
            print(f"\nDecoded {len(results)} emails successfully", file=sys.stderr)

    except Exception as e:
        logger.error("cli_failed", error=str(e), exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if errors:
        print(f"Error: {len(errors)} file(s) could not be decoded", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
