import copy
from pathlib import Path
from typing import Any, Optional

import yaml


def find_repo_root(start: Optional[Path] = None) -> Path:
    """
    Walk upwards to find the repo root (dir that has pyproject.toml or .git).
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent

    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def question_dict(raw_questions: list[dict], qid: str) -> dict:
    """Return the raw dict for *qid* from a list of catalog question dicts."""
    for q in raw_questions:
        if q["qid"] == qid:
            return q
    raise KeyError(qid)


def clone(raw_questions: list[dict]) -> list[dict]:
    """Deep copy so a test can break one question without touching the fixture."""
    return copy.deepcopy(raw_questions)
