"""
CLI configuration data structures.

Defines the Command enum and the UserConfig dataclass produced by argument
parsing and consumed by command execution.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class Command(Enum):
    """Subcommands of the cvdocument CLI."""

    PARSE = "parse"
    NORMALIZE = "normalize"
    VERIFY = "verify"
    RENDER = "render"

    @property
    def needs_source(self) -> bool:
        """Whether this command reads a CV file (.docx or text)."""
        return self in (Command.PARSE, Command.NORMALIZE)

    @property
    def needs_document(self) -> bool:
        """Whether this command reads a document JSON file."""
        return self in (Command.VERIFY, Command.RENDER)


@dataclass
class UserConfig:
    """Configuration gathered from user input."""

    command: Command

    # Inputs
    source: Optional[Path] = None  # CV file (.docx, .txt, .md)
    document: Optional[Path] = None  # Document JSON
    raw_data: Optional[Path] = None  # RawCVData JSON (structured / legacy extraction)
    template: Optional[Path] = None  # Template DOCX

    # Outputs
    output: Optional[Path] = None

    # Document settings
    job_context_id: Optional[str] = None
    store_dir: Optional[Path] = None
    language: Optional[str] = None

    # Structuring collaborator
    structure: bool = False
    openai_model: Optional[str] = None

    # Execution settings
    strict: bool = False
    debug: bool = False
    verbosity: int = 0
    log_file: Optional[str] = None
