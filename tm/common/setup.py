import os
from pathlib import Path
from dataclasses import dataclass

DATA_DIR_ENV = "TM_DATA_DIR"
APP_FOLDER = "TimeMotion"

# Creates `path` (and parents) on demand. With must_exist, a missing folder or a file in its place is an error
# instead, for folders the engine expects someone else to have made.
def ensure_directory(path: Path,must_exist=False):
    path = Path(path)
    if not must_exist:
        path.mkdir(parents=True,exist_ok=True)
        return path
    if not path.exists():
        raise FileNotFoundError(f"Required directory is missing: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Expected a directory, got a file: {path}")
    return path

# Picks the engine's data folder: TM_DATA_DIR, then %APPDATA%/TimeMotion, then ~/.timemotion.
def resolve_data_dir() -> Path:
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override)
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata) / APP_FOLDER
    return Path.home() / f".{APP_FOLDER.lower()}"

# Every folder the engine writes to, resolved once at startup.
@dataclass(frozen=False)
class ProjectPaths:

    data: Path
    logs: Path
    session_logs: Path
    config: Path

    @classmethod
    def under(cls, data: Path):
        data = ensure_directory(data)
        logs = ensure_directory(data / "logs")
        return cls(
            data = data,
            logs = logs,
            session_logs = ensure_directory(logs / "sessions"),
            config = ensure_directory(data / "config"),
        )

    @classmethod
    def build(cls):
        return cls.under(resolve_data_dir())

PATHS = ProjectPaths.build()
