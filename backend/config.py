"""Server settings read from the environment (and .env, if present)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = ROOT / "data"

load_dotenv(ROOT / ".env")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    host: str
    port: int
    log_level: str
    user_header: str
    dev_user: str  # empty: requests without the user header are rejected

    @staticmethod
    def from_env() -> "Settings":
        port = os.getenv("BACKEND_PORT", "13013")
        return Settings(
            data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(port) if port.strip().isdigit() else 13013,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            user_header=os.getenv("USER_HEADER", "X-User-Id"),
            dev_user=os.getenv("DEV_USER", "").strip(),
        )
