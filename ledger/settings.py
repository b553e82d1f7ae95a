import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    namespace: str = "pfin"
    seed_sample_data: bool = True
    log_level: str | None = None


def get_settings() -> Settings:
    data_dir = Path(os.getenv("LEDGER_DATA_DIR") or Path.cwd() / ".data")
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / "ledger.sqlite",
        namespace=os.getenv("LEDGER_NAMESPACE") or "pfin",
        seed_sample_data=_env_flag("LEDGER_SEED_SAMPLE_DATA", True),
        log_level=os.getenv("LEDGER_LOG_LEVEL"),
    )
