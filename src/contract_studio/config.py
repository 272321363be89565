import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_STORE_PATH = Path.home() / ".contract-studio" / "contracts.json"


@dataclass(frozen=True)
class Settings:
    solc_binary: str
    solc_dir: Path | None
    debounce_delay: float
    compile_timeout: float
    store_path: Path


def get_settings() -> Settings:
    solc_dir = os.getenv("CONTRACT_STUDIO_SOLC_DIR")
    return Settings(
        solc_binary=os.getenv("CONTRACT_STUDIO_SOLC_BINARY", "solc"),
        solc_dir=Path(solc_dir).expanduser() if solc_dir else None,
        debounce_delay=int(os.getenv("CONTRACT_STUDIO_DEBOUNCE_MS", "100")) / 1000,
        compile_timeout=float(os.getenv("CONTRACT_STUDIO_COMPILE_TIMEOUT", "60")),
        store_path=Path(os.getenv("CONTRACT_STUDIO_STORE_PATH", str(_DEFAULT_STORE_PATH))).expanduser(),
    )
