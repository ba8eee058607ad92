from pathlib import Path
from typing import Any


TYPE_REGISTRY: dict[str, dict[str, Any]] = {}
# Supported resource types and their handlers:
# csv   - tables (pandas DataFrame)
# json  - analysis results (dict / list)
# txt   - plain text, e.g. generated code snippets


# csv
def _save_csv(obj, path: Path):
    assert hasattr(obj, "to_csv"), "csv type expects a DataFrame-like object"
    obj.to_csv(path, index=False)

def _load_csv(path: Path):
    import pandas as pd
    return pd.read_csv(path)

TYPE_REGISTRY["csv"] = {
    "ext": ".csv",
    "save": _save_csv,
    "load": _load_csv,
}


# json
def _save_json(obj, path: Path):
    import json
    with open(path, "w") as f:
        json.dump(obj, f, indent=2, default=str)

def _load_json(path: Path):
    import json
    with open(path, "r") as f:
        return json.load(f)

TYPE_REGISTRY["json"] = {
    "ext": ".json",
    "save": _save_json,
    "load": _load_json,
}


# txt
def _save_txt(text: str, path: Path):
    assert isinstance(text, str), "txt type expects a string"
    path.write_text(text, encoding="utf-8")

def _load_txt(path: Path) -> str:
    return path.read_text(encoding="utf-8")

TYPE_REGISTRY["txt"] = {
    "ext": ".txt",
    "save": _save_txt,
    "load": _load_txt,
}
