import os
from pathlib import Path


# You can set your custom data directory by running (change path to desired location): export LONGORWIDE_DATA_DIR="~/user/longorwide_data"
# If not set, defaults to ~/.longorwide/

def get_data_root() -> Path:
    # Allow user to override via environment variable
    custom = os.getenv("LONGORWIDE_DATA_DIR")
    if custom:
        root = Path(custom).expanduser()
    else:
        # Default: ~/.longorwide/
        root = Path.home() / ".longorwide"

    root.mkdir(parents=True, exist_ok=True)
    return root

DATA_ROOT = get_data_root()
LOG_PATH = DATA_ROOT / "history.log"
