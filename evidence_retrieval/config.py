"""
Evidence Retrieval Configuration Module
Centralized configuration for the retrieval engine.
"""

import os
from pathlib import Path

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "EvidenceRetrieval"
APPDATA_DIR = Path(
    os.environ.get(
        'EVIDENCE_RETRIEVAL_HOME',
        Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME,
    )
)
LOGS_DIR = APPDATA_DIR / "logs"

# Logging Configuration
LOG_FILE = LOGS_DIR / "retrieval.log"
DEBUG_LOG_FILE = LOGS_DIR / "debug_flow.txt"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# ============================================================================
# Fusion Settings
# ============================================================================

# Reciprocal Rank Fusion constant: each lane adds 1 / (RRF_K + rank + 1)
RRF_K = 60

# Heuristic bonuses are added after fusion, scaled down by this factor.
# NOTE: one RRF contribution at rank 0 is ~0.016 while the largest scaled
# heuristic bonus is ~0.0095, so the heuristics only reorder near-ties.
HEURISTIC_SCALE = 0.01

# Heuristic Booster Settings
EXACT_PHRASE_BONUS = 0.5
TERM_DENSITY_WEIGHT = 0.3
MIN_DENSITY_TERM_LENGTH = 3     # Only terms longer than this count toward density
LEAD_CHUNK_BONUS = 0.15

# ============================================================================
# Lane Settings
# ============================================================================

# Lexical lane asks the index for top_k * 4 candidates
LEXICAL_CANDIDATE_MULTIPLIER = 4

# Semantic lane scores the whole (filtered) corpus when sibling expansion
# yields fewer than top_k * 2 candidates, and keeps the best top_k * 3
SEMANTIC_FALLBACK_MULTIPLIER = 2
SEMANTIC_KEEP_MULTIPLIER = 3

# Default number of results when the caller passes no (or a non-positive) top_k
DEFAULT_TOP_K = 10

# Per-lane wait before the lane is treated as failed
LANE_TIMEOUT_SECONDS = 30.0

# ============================================================================
# Embedding Settings
# ============================================================================

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
EMBEDDING_DIMENSIONS = 384      # Local hashing provider vector size
EMBEDDING_CONCURRENCY = 4       # Permit pool size for bulk embedding
EMBEDDING_RETRY_SECONDS = 60    # Wait before retrying an unavailable model

# --- Per-Corpus Configuration System ---
RETRIEVAL_CONFIG_FILE = Path(__file__).parent / "retrieval.yaml"
CORPUS_CONFIGS = {}
_CONFIGS_LOADED = False


def _config_error(message: str):
    from evidence_retrieval.logging_config import debug_log
    debug_log(f"[Config] ERROR: {message}")


def load_retrieval_config():
    """Loads per-corpus settings from the packaged retrieval.yaml."""
    global CORPUS_CONFIGS, _CONFIGS_LOADED
    _CONFIGS_LOADED = True
    CORPUS_CONFIGS = {}
    try:
        with open(RETRIEVAL_CONFIG_FILE, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if DEBUG_MODE:
            from evidence_retrieval.logging_config import debug_log
            debug_log(f"[Config] WARNING: Retrieval config file not found at {RETRIEVAL_CONFIG_FILE}. Using defaults.")
        return
    except (OSError, yaml.YAMLError) as e:
        _config_error(f"Failed to load or parse retrieval config file: {e}")
        return

    if not isinstance(data, dict):
        _config_error(f"Retrieval config root must be a mapping, got {type(data).__name__}")
        return
    corpora = data.get('corpora') or {}
    if not isinstance(corpora, dict):
        _config_error(f"'corpora' must be a mapping, got {type(corpora).__name__}")
        return

    CORPUS_CONFIGS = corpora
    if DEBUG_MODE and CORPUS_CONFIGS:
        from evidence_retrieval.logging_config import debug_log
        debug_log(f"[Config] Loaded {len(CORPUS_CONFIGS)} corpus configurations from {RETRIEVAL_CONFIG_FILE}")


def _resolve_top_k(value) -> int:
    # bool is an int subclass; "true" is not a result count
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if value is not None:
        _config_error(f"Invalid top_k {value!r}; using {DEFAULT_TOP_K}")
    return DEFAULT_TOP_K


def get_corpus_config(scope: str) -> dict:
    """
    Returns the retrieval settings for a corpus scope, with fallbacks.

    Entries that are not mappings are skipped. A 'top_k' that is not a
    positive integer resolves to DEFAULT_TOP_K.

    Args:
        scope: Corpus scope name (a session id, or "global").

    Returns:
        A dictionary with a positive integer 'top_k' entry.
    """
    if not _CONFIGS_LOADED:
        load_retrieval_config()

    settings = {'top_k': DEFAULT_TOP_K}

    # 1. Exact scope entry, 2. shared default entry, 3. hard-coded fallback
    for key in (scope, 'default'):
        entry = CORPUS_CONFIGS.get(key)
        if isinstance(entry, dict):
            settings.update(entry)
            break

    settings['top_k'] = _resolve_top_k(settings.get('top_k'))
    return settings


# Load configs on module import
load_retrieval_config()
# --- End Per-Corpus Configuration System ---
