"""Configuration and environment loading for fspec."""

from pathlib import Path
from typing import Optional
import os

# Try to load dotenv if available
try:
    from dotenv import load_dotenv
    HAS_DOTENV = True
except ImportError:
    HAS_DOTENV = False


def load_env() -> bool:
    """Load environment variables from .env file.

    Returns:
        True if .env file was found and loaded, False otherwise.
    """
    if not HAS_DOTENV:
        return False

    # Try repo root first (relative to this file)
    repo_root = Path(__file__).parent.parent.parent
    env_file = repo_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        return True

    # Try current directory
    if Path(".env").exists():
        load_dotenv()
        return True

    return False


# fspec configuration constants
FSPEC_DIR = ".fspec"
CONFIG_FILE = "config.json"
SPEC_SUFFIX = ".fspec.md"
DEFAULT_SPECS_DIR = "specs"

# Env var that forces the heuristic parser ("heuristic") for every file
PARSER_ENV_VAR = "FSPEC_PARSER"

# Max distance (in lines) between a doc comment's end and the symbol it documents
DOC_WINDOW = 5

# Source files we analyze
SOURCE_EXTENSIONS = [".js", ".mjs", ".cjs", ".jsx", ".ts"]

# Default exclusion patterns (applies to all file discovery)
DEFAULT_EXCLUDE_PATTERNS = [
    ".*",              # All dot-prefixed folders (.git, .fspec, etc.)
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__tests__",
    "__mocks__",
    "*.test.*",
    "*.spec.*",
    "*.min.js",
]

# === Document labels ===

TITLE_LABEL = "Feature"
DEFAULT_VERSION = "1.0.0"

SECTION_OVERVIEW = "Overview"
SECTION_REQUIREMENTS = "Requirements"
SECTION_ACCEPTANCE = "Acceptance Criteria"
SECTION_DERIVED_OUTPUTS = "Derived Outputs"
SECTION_QUALITY = "Extraction Quality"

# Derived-output row types
OUTPUT_CODE = "code"
OUTPUT_TEST = "test"

# Logical metadata slots -> accepted spellings (first one is written by fspec)
METADATA_SYNONYMS: dict[str, list[str]] = {
    "status": ["status", "state"],
    "version": ["version"],
    "quality": ["quality"],
    "source": ["source", "source file", "source path"],
    "codepath": ["codepath", "code path", "code_path"],
    "enriched": ["enriched"],
    "enriched_at": ["enriched_at", "enrichment date", "enrichment_date"],
}


def get_fspec_path(base_path: Optional[Path] = None) -> Path:
    """Get the .fspec directory path.

    Args:
        base_path: Base path to look for .fspec directory.
                   If None, uses current working directory.

    Returns:
        Path to the .fspec directory.
    """
    if base_path is None:
        base_path = Path.cwd()
    return base_path / FSPEC_DIR


def forced_heuristic() -> bool:
    """Return True when the environment disables the precise parser."""
    return os.environ.get(PARSER_ENV_VAR, "").strip().lower() == "heuristic"


def load_config(base_path: Optional[Path] = None):
    """Load the project configuration, falling back to defaults.

    Args:
        base_path: Project root. Defaults to cwd.

    Returns:
        FspecConfig instance.
    """
    from .models import FspecConfig
    from .storage import read_json

    config_file = get_fspec_path(base_path) / CONFIG_FILE
    if not config_file.exists():
        return FspecConfig()
    return FspecConfig.model_validate(read_json(config_file))
