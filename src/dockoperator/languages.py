from __future__ import annotations

import os
from pathlib import Path

LANGLIST_NAME = "langlist.operator"
DEFAULT_LANGUAGES = (
    "Python",
    "Node.js",
    "Java",
    "Ruby",
    "PHP",
    "Go",
    "C# (.NET)",
    "C++",
    "Rust",
)


def data_dir() -> Path:
    root = os.getenv("DOCKOPERATOR_HOME")
    if root:
        return Path(root).expanduser()
    return Path.home() / ".dockoperator"


def language_list_path() -> Path:
    d = data_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d / LANGLIST_NAME


def ensure_language_list() -> bool:
    p = language_list_path()
    if p.exists():
        return False
    p.write_text("".join(f"{name}\n" for name in DEFAULT_LANGUAGES), encoding="utf-8")
    return True


def load_languages() -> list[str]:
    ensure_language_list()
    lines = language_list_path().read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def add_language(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Language name must not be empty")
    if "\n" in name or "\r" in name:
        raise ValueError("Language name must be a single line")
    ensure_language_list()
    with language_list_path().open("a", encoding="utf-8") as fh:
        fh.write(f"{name}\n")
    return name
