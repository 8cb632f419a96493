"""
Engine configuration.

Operational settings (logging) and the default auction parameters used by
the CLI demo. Values come from, in increasing priority: dataclass defaults,
a ``.env`` file, and ``TOKENAUCTION_*`` environment variables.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "TOKENAUCTION_"


@dataclass
class EngineConfig:
    """Engine-wide configuration parameters"""

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    # Demo auction parameters
    token_amount_for_sale: int = 1000
    reserve_price: int = 50
    min_increment: int = 5
    auction_duration_hours: int = 24

    # Initial balances handed to demo participants
    demo_owner_balance: int = 1000
    demo_bidder_balance: int = 500

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        return level


def _coerce(raw: str, current):
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, Path):
        return Path(raw)
    return raw


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from an env file and the environment.

    Args:
        env_file: Optional path to a .env file. If None, a ``.env`` in the
            working directory is picked up when present.

    Returns:
        EngineConfig instance
    """
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)

    config = EngineConfig()
    for f in fields(config):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is not None:
            setattr(config, f.name, _coerce(raw, getattr(config, f.name)))
    return config
