"""Spec documents: parsing, synthesis and enrichment."""

from .parser import (
    parse_spec,
    parse_spec_file,
    update_metadata,
    update_ac_status,
    update_ac_statuses,
    add_requirement,
    get_completion_rate,
    validate_spec,
)
from .synthesis import synthesize_source, synthesize_file, synthesize_files, write_spec
from .enrich import enrich_document, enrich_file, enrich_files

__all__ = [
    "parse_spec",
    "parse_spec_file",
    "update_metadata",
    "update_ac_status",
    "update_ac_statuses",
    "add_requirement",
    "get_completion_rate",
    "validate_spec",
    "synthesize_source",
    "synthesize_file",
    "synthesize_files",
    "write_spec",
    "enrich_document",
    "enrich_file",
    "enrich_files",
]
