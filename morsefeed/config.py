"""Configuration constants, capacities, and .env loading.

WHY: Centralizes every tunable value — the player executable, the store
location, HTTP settings, and the fixed capacities the tokenizer and link
extractor work within — so they are easy to find and override without
touching logic.

HOW: python-dotenv loads the .env file on import. Values that users may
want to change come from environment variables with sensible defaults;
capacities that define output behavior are plain module constants.

RULES:
- Environment overrides use the MORSEFEED_ prefix
- The store path defaults to $HOME/.morsefeed and is None without HOME
- Capacities include room for a terminator, as the byte formats assume
  (a capacity of 8 holds at most 7 bytes)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from morsefeed import __version__

# Load .env from the directory the tool is run from
load_dotenv()

# ---------------------------------------------------------------------------
# Player (tone generator) configuration
# ---------------------------------------------------------------------------

PLAYER_COMMAND = os.getenv("MORSEFEED_PLAYER", "mbeep")
"""Executable started for playback; must speak the row/acknowledgment protocol."""

PAUSE_POLL_INTERVAL_S = float(os.getenv("MORSEFEED_PAUSE_POLL", "0.1"))
PAUSE_SETTLE_S = 0.5  # pause after the space bar so the key-up is not re-read

# ---------------------------------------------------------------------------
# Row layout defaults
# ---------------------------------------------------------------------------

DEFAULT_WORDS_PER_ROW = 5
DEFAULT_PLAYER_WORDS_PER_ROW = 1
MAX_WORDS_PER_ROW = 100

# ---------------------------------------------------------------------------
# Capacities (bytes, including terminator slot)
# ---------------------------------------------------------------------------

LINE_SIZE = 1024
ENTITY_SIZE = 16
TAG_SIZE = 8
URL_SIZE = 1024
TITLE_SIZE = 128
FIRST_BUFFER_SIZE = 65536

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

USER_AGENT = os.getenv("MORSEFEED_USER_AGENT", "morsefeed/{}".format(__version__))
FETCH_TIMEOUT_S = float(os.getenv("MORSEFEED_FETCH_TIMEOUT", "30"))
MAX_REDIRECTS = 5

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("MORSEFEED_LOG_LEVEL", "WARNING").upper()

# ---------------------------------------------------------------------------
# Position / option store
# ---------------------------------------------------------------------------

STATE_FILE_NAME = ".morsefeed"


def default_state_path() -> Optional[Path]:
    """Resolve the position/option store path.

    WHY: Position tracking and saved option sets both need a store file,
    and the tool must report clearly when none can be located.

    HOW: MORSEFEED_STATE_FILE wins; otherwise $HOME/.morsefeed.

    RULES:
    - Returns None when neither the override nor HOME is set
    - The file itself need not exist (absent file = empty store)
    """
    override = os.getenv("MORSEFEED_STATE_FILE", "").strip()
    if override:
        return Path(override).expanduser()

    home = os.getenv("HOME", "").strip()
    if not home:
        return None
    return Path(home) / STATE_FILE_NAME
