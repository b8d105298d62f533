"""
Module: cli

Purpose:
    Command-line front end for authoring documents without the editor:
    list variants, scaffold a document, validate, preview, repair and
    render an answer key.

Key Functions:
    - main(argv=None): Entry point; returns a process exit code

Dependencies:
    - argparse (std)
    - ielts_toolkit.authoring, ielts_toolkit.core, ielts_toolkit.output

Used By:
    - ``ielts-toolkit`` console script
    - ``python -m ielts_toolkit``
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ielts_toolkit import __version__
from ielts_toolkit.authoring import create_group, load_config, project, supported_variants
from ielts_toolkit.authoring.numbering import numbering_summary
from ielts_toolkit.authoring.projection import NodeKind, RenderNode, RenderTree
from ielts_toolkit.core.models import Document, Stem, UnsupportedVariant, constraints_for
from ielts_toolkit.core.schemas import ValidationError, collect_problems
from ielts_toolkit.core.utils import load_document_json, save_document_json

logger = logging.getLogger("ielts_toolkit")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def _load(path: Path, **kwargs) -> Optional[Document]:
    try:
        return load_document_json(path, **kwargs)
    except FileNotFoundError:
        logger.error(f"File not found: {path}")
    except json.JSONDecodeError as e:
        logger.error(f"{path} is not valid JSON: {e}")
    except ValidationError as e:
        logger.error(f"{path} failed validation: {e}")
        for err in e.errors:
            logger.error(f"  - {err}")
    except ValueError as e:
        logger.error(f"{path} could not be loaded: {e}")
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Preview formatting
# ─────────────────────────────────────────────────────────────────────────────

def _format_node(node: RenderNode) -> str:
    if node.kind == NodeKind.ITEM:
        line = f"{node.number}. {node.text}"
    elif node.kind == NodeKind.CHOICE:
        line = f"{node.ref}  {node.text}"
    elif node.kind == NodeKind.BLANK:
        line = f"({node.number}) ________"
    elif node.kind == NodeKind.LABEL:
        line = f"({node.number}) at {node.x:g}%, {node.y:g}%"
    elif node.kind == NodeKind.STEP:
        line = f"Step {node.number}"
    elif node.kind == NodeKind.CELL:
        line = f"[{node.ref}] {node.text}"
    elif node.kind == NodeKind.IMAGE:
        line = f"<image {node.ref or 'none'}> {node.text}".rstrip()
    else:
        line = node.text or f"<{node.kind.value}>"
    if node.answer:
        line += f"  => {node.answer}"
    return line


def _print_node(node: RenderNode, depth: int) -> None:
    if node.kind == NodeKind.PASSAGE:
        # Inline the passage so the blanks read in place
        parts = []
        for child in node.children:
            if child.kind == NodeKind.BLANK:
                parts.append(f"({child.number}) ________")
            else:
                parts.append(child.text)
        for line in "".join(parts).splitlines():
            print("  " * depth + line)
        for child in node.children:
            if child.kind == NodeKind.BLANK and child.answer:
                print("  " * (depth + 1) + f"{child.number}. {child.answer}")
        return
    print("  " * depth + _format_node(node))
    for child in node.children:
        _print_node(child, depth + 1)


def _print_tree(tree: RenderTree) -> None:
    if tree.stem.title:
        print(tree.stem.title)
        print("=" * len(tree.stem.title))
    for group in tree.groups:
        print()
        print(f"{group.heading} - {group.title}")
        if group.instruction:
            print(group.instruction)
        if group.word_limit_text:
            print(group.word_limit_text)
        for node in group.body:
            _print_node(node, 1)
    print()
    print(f"Total questions: {tree.total_questions}")


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_variants(args: argparse.Namespace) -> int:
    for question_type in supported_variants():
        constraints = constraints_for(question_type)
        print(f"{question_type.value:<36} {constraints.title}")
    return EXIT_OK


def cmd_new(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    document = Document(stem=Stem.passage(args.title, ""))
    try:
        for tag in args.tags:
            document = document.add_group(create_group(tag, config=config))
    except UnsupportedVariant as e:
        logger.error(str(e))
        return EXIT_USAGE
    save_document_json(document, args.output)
    logger.info(f"Wrote {len(document.groups)} question group(s) to {args.output}")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    document = _load(args.document, strict=args.strict)
    if document is None:
        return EXIT_INVALID

    failed = 0
    for group in document.groups:
        for problem in collect_problems(group):
            logger.error(f"{group.id}: {problem}")
            failed += 1
    if failed:
        logger.error(f"{failed} problem(s) found")
        return EXIT_INVALID

    summary = numbering_summary(document)
    logger.info(f"OK: {len(document.groups)} group(s), {summary.total_questions} question(s)")
    return EXIT_OK


def cmd_preview(args: argparse.Namespace) -> int:
    document = _load(args.document)
    if document is None:
        return EXIT_INVALID
    tree = project(document, start=args.start)
    if args.json:
        print(json.dumps(tree.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_tree(tree)
    return EXIT_OK


def cmd_repair(args: argparse.Namespace) -> int:
    document = _load(args.document, repair=True)
    if document is None:
        return EXIT_INVALID
    save_document_json(document, args.output)
    logger.info(f"Wrote repaired document to {args.output}")
    return EXIT_OK


def cmd_answer_key(args: argparse.Namespace) -> int:
    from ielts_toolkit.output import render_answer_key

    document = _load(args.document)
    if document is None:
        return EXIT_INVALID
    render_answer_key(project(document, start=args.start), args.output)
    return EXIT_OK


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ielts-toolkit",
        description="Author IELTS reading and listening question groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s variants
  %(prog)s new note_completion matching -o test.json --title "Coral reefs"
  %(prog)s validate test.json --strict
  %(prog)s preview test.json
  %(prog)s answer-key test.json answers.pdf
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", type=Path, help="Authoring config JSON (default: built-in defaults)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("variants", help="List supported question types")
    p.set_defaults(func=cmd_variants)

    p = sub.add_parser("new", help="Create a document with default question groups")
    p.add_argument("tags", nargs="+", help="Question type tags, in display order")
    p.add_argument("-o", "--output", type=Path, required=True, help="Document JSON to write")
    p.add_argument("--title", default="", help="Stem title")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("validate", help="Validate a document and check group consistency")
    p.add_argument("document", type=Path)
    p.add_argument("--strict", action="store_true", help="Also validate against the JSON schema")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("preview", help="Print the numbered preview of a document")
    p.add_argument("document", type=Path)
    p.add_argument("--start", type=int, default=1, help="First question number (default: 1)")
    p.add_argument("--json", action="store_true", help="Print the render tree as JSON")
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("repair", help="Re-derive answers and clear dangling references")
    p.add_argument("document", type=Path)
    p.add_argument("output", type=Path)
    p.set_defaults(func=cmd_repair)

    p = sub.add_parser("answer-key", help="Render an answer-key PDF")
    p.add_argument("document", type=Path)
    p.add_argument("output", type=Path)
    p.add_argument("--start", type=int, default=1, help="First question number (default: 1)")
    p.set_defaults(func=cmd_answer_key)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
