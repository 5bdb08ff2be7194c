#!/usr/bin/env python3
# Copyright 2025 Ivo Mateev
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command-line interface for cvdocument.

Subcommands:
- parse: run the heuristic text parser over a CV file and write JSON
- normalize: build (or reconcile) the CV document of a job context
- verify: check a document JSON file against its invariants
- render: export a document JSON file through a .docx template

Exit codes: 0 success, 1 failure, 2 warnings in --strict mode.
"""

from __future__ import annotations

import argparse
import json
import traceback
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, List, Optional, TypeVar

from .cli_config import Command, UserConfig
from .editor import DocumentEditor
from .editor.actions import UpdateDocument
from .extractors import OpenAICVStructurer, parse_cv_text, read_docx_text
from .locales import list_locales
from .logging_utils import LOG, fmt_issues, setup_logging
from .models import CVDocument, loads_document
from .normalizer import normalize
from .persistence import JsonFileDocumentStore
from .renderers import DocxCVRenderer
from .sources import RawCVData
from .verification import verify_document

T = TypeVar("T")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_STRICT_WARNINGS = 2


# ------------------------- Phase 1: gather -------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cvdocument",
        description="Normalize CV text into a CV document, verify it and export it.",
        epilog="""
Examples:
  Parse a CV and print what the heuristic parser found:
    cvdocument parse --source cv.docx

  Build the document of a job context, persisting it in a folder:
    cvdocument normalize --source cv.docx --job-context-id job-42 \\
      --store-dir documents/ --output job-42.json

  Same, with the OpenAI structuring step:
    cvdocument normalize --source cv.docx --job-context-id job-42 --structure

  Verify and export:
    cvdocument verify --document job-42.json --strict
    cvdocument render --document job-42.json --template template.docx --output cv.docx
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logs + stack traces on failure.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity.")
    parser.add_argument("--log-file", help="Optional path to a log file. If set, all output is also written there.")

    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Parse a CV file with the heuristic text parser.")
    p_parse.add_argument("--source", required=True, help="CV file (.docx or plain text)")
    p_parse.add_argument("--output", help="Output JSON (default: stdout)")

    p_norm = sub.add_parser("normalize", help="Build the CV document of a job context.")
    p_norm.add_argument("--source", help="CV file (.docx or plain text)")
    p_norm.add_argument("--raw-data", help="JSON with cvText and optional structured/extracted data")
    p_norm.add_argument("--job-context-id", required=True, help="Job context the document belongs to")
    p_norm.add_argument("--store-dir", help="Folder of persisted documents (read and updated)")
    p_norm.add_argument("--language", choices=list_locales(), help="Override the detected document language")
    p_norm.add_argument("--structure", action="store_true", help="Structure the CV text with OpenAI first")
    p_norm.add_argument("--openai-model", help="OpenAI model (default: OPENAI_MODEL or gpt-4o)")
    p_norm.add_argument("--output", help="Output document JSON (default: stdout)")

    p_verify = sub.add_parser("verify", help="Verify a document JSON file.")
    p_verify.add_argument("--document", required=True, help="Document JSON")
    p_verify.add_argument("--strict", action="store_true", help="Treat warnings as failure (exit code 2).")

    p_render = sub.add_parser("render", help="Render a document JSON file through a .docx template.")
    p_render.add_argument("--document", required=True, help="Document JSON")
    p_render.add_argument("--template", required=True, help="Template .docx")
    p_render.add_argument("--output", required=True, help="Output .docx")

    return parser


def _path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


def gather_user_requirements(argv: Optional[List[str]] = None) -> UserConfig:
    """Parse command-line arguments into a UserConfig. No side effects."""
    args = _build_parser().parse_args(argv)
    command = Command(args.command)

    return UserConfig(
        command=command,
        source=_path(getattr(args, "source", None)),
        document=_path(getattr(args, "document", None)),
        raw_data=_path(getattr(args, "raw_data", None)),
        template=_path(getattr(args, "template", None)),
        output=_path(getattr(args, "output", None)),
        job_context_id=getattr(args, "job_context_id", None),
        store_dir=_path(getattr(args, "store_dir", None)),
        language=getattr(args, "language", None),
        structure=bool(getattr(args, "structure", False)),
        openai_model=getattr(args, "openai_model", None),
        strict=bool(getattr(args, "strict", False)),
        debug=args.debug,
        verbosity=args.verbose,
        log_file=args.log_file,
    )


# ------------------------- Phase 2: prepare -------------------------

def prepare_execution_environment(config: UserConfig) -> UserConfig:
    """Validate input paths and create output folders."""
    command = config.command
    if command == Command.NORMALIZE:
        if config.source is None and config.raw_data is None:
            raise ValueError("normalize requires --source or --raw-data")
        if not config.job_context_id:
            raise ValueError("normalize requires --job-context-id")
    elif command.needs_source and config.source is None:
        raise ValueError(f"{command.value} requires --source")
    if command.needs_document and config.document is None:
        raise ValueError(f"{command.value} requires --document")
    if command == Command.RENDER and (config.template is None or config.output is None):
        raise ValueError("render requires --template and --output")

    for label, path in (
        ("Source", config.source),
        ("Raw data", config.raw_data),
        ("Document", config.document),
        ("Template", config.template),
    ):
        if path is not None and not path.is_file():
            raise FileNotFoundError(f"{label} file not found: {path}")

    if config.output is not None:
        config = replace(config, output=config.output.expanduser().resolve())
        config.output.parent.mkdir(parents=True, exist_ok=True)
    if config.store_dir is not None:
        config.store_dir.mkdir(parents=True, exist_ok=True)
    return config


# ------------------------- Phase 3: execute -------------------------

def read_cv_text(path: Path) -> str:
    """Text of a CV file: paragraphs of a .docx, or the file read as UTF-8."""
    if path.suffix.lower() == ".docx":
        return read_docx_text(path)
    return path.read_text(encoding="utf-8")


def _write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        print(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    LOG.info("Wrote %s", output)


def _load_document_file(path: Path) -> CVDocument:
    document = loads_document(path.read_text(encoding="utf-8"))
    if document is None:
        raise ValueError(f"Not a readable CV document: {path}")
    return document


def _to_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def _required(value: Optional[T], option: str) -> T:
    if value is None:
        raise ValueError(f"Missing required option {option}")
    return value


def _execute_parse(config: UserConfig) -> int:
    source = _required(config.source, "--source")
    parsed = parse_cv_text(read_cv_text(source))
    LOG.info(
        "Parsed %s: %d experience, %d education, %d skills, %d languages",
        source.name,
        len(parsed.experience),
        len(parsed.education),
        len(parsed.skills),
        len(parsed.languages),
    )
    _write_output(_to_json(asdict(parsed)), config.output)
    return EXIT_OK


def _raw_data_for(config: UserConfig) -> RawCVData:
    if config.raw_data is not None:
        raw = RawCVData.from_dict(json.loads(config.raw_data.read_text(encoding="utf-8")))
    else:
        raw = RawCVData()
    if config.source is not None:
        raw = replace(raw, cv_text=read_cv_text(config.source))

    if config.structure:
        structurer = OpenAICVStructurer(model=config.openai_model)
        raw = replace(raw, ai_structured=structurer.structure(raw.cv_text))
    return raw


def _execute_normalize(config: UserConfig) -> int:
    job_context_id = _required(config.job_context_id, "--job-context-id")
    raw = _raw_data_for(config)

    if config.store_dir is not None:
        editor = DocumentEditor(JsonFileDocumentStore(config.store_dir))
        document = editor.load(job_context_id, raw)
        if config.language and document.language != config.language:
            document = editor.dispatch(UpdateDocument({"language": config.language}))
        for warning in editor.warnings:
            LOG.warning(warning)
    else:
        document = normalize(job_context_id, raw)
        if config.language:
            document = replace(document, language=config.language)

    LOG.info(
        "Document %s: %d experience entries, language %s",
        document.id,
        len(document.experience),
        document.language,
    )
    _write_output(_to_json(document.to_dict()), config.output)
    return EXIT_OK


def _execute_verify(config: UserConfig) -> int:
    path = _required(config.document, "--document")
    result = verify_document(_load_document_file(path))
    if result.ok and not result.warnings:
        LOG.info("[OK] %s", path.name)
        return EXIT_OK

    issues = fmt_issues(result.errors, result.warnings)
    if not result.ok:
        LOG.error("[FAIL] %s | %s", path.name, issues)
        return EXIT_FAILURE
    LOG.warning("[WARN] %s | %s", path.name, issues)
    return EXIT_STRICT_WARNINGS if config.strict else EXIT_OK


def _execute_render(config: UserConfig) -> int:
    path = _required(config.document, "--document")
    output = _required(config.output, "--output")
    document = _load_document_file(path)
    DocxCVRenderer().render(document, _required(config.template, "--template"), output)
    LOG.info("[OK] %s -> %s", path.name, output.name)
    return EXIT_OK


_EXECUTORS = {
    Command.PARSE: _execute_parse,
    Command.NORMALIZE: _execute_normalize,
    Command.VERIFY: _execute_verify,
    Command.RENDER: _execute_render,
}


def execute(config: UserConfig) -> int:
    return _EXECUTORS[config.command](config)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Parses arguments, prepares paths and runs the subcommand; any exception
    is logged and turned into exit code 1.
    """
    config = gather_user_requirements(argv)

    if config.log_file:
        Path(config.log_file).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
    setup_logging(config.debug, log_file=config.log_file, verbosity=config.verbosity)

    try:
        config = prepare_execution_environment(config)
        return execute(config)
    except Exception as e:
        LOG.error(str(e))
        if config.debug:
            LOG.error(traceback.format_exc())
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
