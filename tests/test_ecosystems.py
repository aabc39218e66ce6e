from __future__ import annotations

from pathlib import Path

from dockoperator.ecosystems import EcosystemProfile, default_registry, registry_names


def _make_project(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def _profile(name: str) -> EcosystemProfile:
    for profile in default_registry():
        if profile.name == name:
            return profile
    raise AssertionError(f"no profile named {name}")


def _render(name: str, root: Path) -> str:
    profile = _profile(name)
    return profile.render_fragment(root, profile.extract_dependencies(root)).text


def test_builtin_registry_order() -> None:
    assert registry_names(default_registry()) == [
        "Python",
        "Node.js",
        "Java",
        "Ruby",
        "PHP",
        "Go",
        "C# (.NET)",
        "C++",
        "Rust",
    ]


def test_python_sources_only_match_python(tmp_path: Path) -> None:
    _make_project(tmp_path, {"main.py": "import requests\n", "pkg/util.py": "from flask import Flask\n"})
    hits = [p.name for p in default_registry() if p.detect(tmp_path)]
    assert hits == ["Python"]


def test_manifest_alone_is_enough_to_detect(tmp_path: Path) -> None:
    _make_project(tmp_path, {"Gemfile": "source 'https://rubygems.org'\n"})
    assert _profile("Ruby").detect(tmp_path)
    assert not _profile("Python").detect(tmp_path)


def test_python_dependency_extraction(tmp_path: Path) -> None:
    _make_project(
        tmp_path,
        {
            "app.py": "import zeta\nfrom alpha.sub import thing\n    import mid\n# import commented\n",
            "lib/extra.py": "x = 1  # import nothing\nfrom zeta import other\n",
            "notes.txt": "import ignored\n",
        },
    )
    deps = _profile("Python").extract_dependencies(tmp_path)
    assert deps == {"zeta", "alpha", "mid"}


def test_python_list_install_is_sorted(tmp_path: Path) -> None:
    _make_project(tmp_path, {"a.py": "import zeta\n", "b.py": "import alpha\n", "c.py": "import mid\n"})
    text = _render("Python", tmp_path)
    assert text == (
        "FROM python:3.9\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "RUN pip install --upgrade pip && pip install alpha mid zeta\n"
        'CMD ["python", "main.py"]\n'
    )


def test_manifest_takes_precedence_over_extracted_deps(tmp_path: Path) -> None:
    _make_project(tmp_path, {"requirements.txt": "flask==3.0\n", "main.py": "import numpy\nimport pandas\n"})
    profile = _profile("Python")
    deps = profile.extract_dependencies(tmp_path)
    fragment = profile.render_fragment(tmp_path, deps)

    assert deps == {"numpy", "pandas"}
    assert "RUN pip install --upgrade pip && pip install -r requirements.txt\n" in fragment.text
    assert "numpy" not in fragment.text
    assert fragment.manifest == "requirements.txt"


def test_node_require_wins_and_relative_paths_are_skipped(tmp_path: Path) -> None:
    _make_project(
        tmp_path,
        {
            "index.js": (
                "const express = require('express');\n"
                "const local = require('./local');\n"
                "import React from \"react\";\n"
                "import helper from '../helper';\n"
                "const a = require('lodash'); import b from 'axios';\n"
            ),
            "src/app.ts": "import { Component } from '@angular/core';\n",
        },
    )
    deps = _profile("Node.js").extract_dependencies(tmp_path)
    assert deps == {"express", "react", "lodash", "@angular/core"}


def test_node_fragment_without_manifest(tmp_path: Path) -> None:
    _make_project(tmp_path, {"index.js": "const express = require('express');\n"})
    assert _render("Node.js", tmp_path) == (
        "FROM node:14\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "RUN npm install express\n"
        'CMD ["npm", "start"]\n'
    )


def test_go_without_module_builds_but_does_not_download(tmp_path: Path) -> None:
    _make_project(tmp_path, {"main.go": 'package main\n\nimport "fmt"\n'})
    profile = _profile("Go")
    assert profile.detect(tmp_path)
    assert profile.extract_dependencies(tmp_path) == {"fmt"}
    assert _render("Go", tmp_path) == (
        "FROM golang:1.16\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "RUN go build -o main .\n"
        'CMD ["./main"]\n'
    )


def test_go_module_downloads_before_build(tmp_path: Path) -> None:
    _make_project(tmp_path, {"go.mod": "module example.com/app\n", "main.go": "package main\n"})
    text = _render("Go", tmp_path)
    assert "RUN go mod download\nRUN go build -o main .\n" in text


def test_java_pom_only(tmp_path: Path) -> None:
    _make_project(tmp_path, {"pom.xml": "<project/>\n"})
    profile = _profile("Java")
    assert profile.detect(tmp_path)
    fragment = profile.render_fragment(tmp_path, profile.extract_dependencies(tmp_path))
    assert fragment.text == (
        "FROM openjdk:11\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "RUN mvn install\n"
        'CMD ["java", "-jar", "target/app.jar"]\n'
    )
    assert not fragment.ambiguous


def test_java_maven_wins_over_gradle(tmp_path: Path) -> None:
    _make_project(tmp_path, {"pom.xml": "<project/>\n", "build.gradle": "plugins {}\n"})
    text = _render("Java", tmp_path)
    assert "RUN mvn install\n" in text
    assert "gradle" not in text


def test_java_gradle_only(tmp_path: Path) -> None:
    _make_project(tmp_path, {"build.gradle": "plugins {}\n"})
    text = _render("Java", tmp_path)
    assert "RUN gradle build\n" in text
    assert text.endswith('CMD ["java", "-jar", "build/libs/app.jar"]\n')


def test_java_sources_without_build_file_get_placeholder(tmp_path: Path) -> None:
    _make_project(tmp_path, {"src/App.java": "import java.util.List;\nimport com.google.gson.Gson;\n"})
    profile = _profile("Java")
    deps = profile.extract_dependencies(tmp_path)
    fragment = profile.render_fragment(tmp_path, deps)

    assert deps == {"java.util.List", "com.google.gson.Gson"}
    assert fragment.ambiguous
    assert fragment.text.splitlines()[-1].startswith("# ")
    assert "CMD" not in fragment.text
    assert "RUN" not in fragment.text


def test_rust_without_cargo_degrades_to_placeholders(tmp_path: Path) -> None:
    _make_project(tmp_path, {"src/main.rs": "fn main() {}\n"})
    profile = _profile("Rust")
    assert profile.detect(tmp_path)
    fragment = profile.render_fragment(tmp_path, profile.extract_dependencies(tmp_path))
    assert fragment.ambiguous
    assert fragment.text == (
        "FROM rust:latest\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "# Add a Cargo.toml file to manage dependencies\n"
        'CMD ["./target/release/<your_binary>"]\n'
    )


def test_rust_with_cargo_builds_release(tmp_path: Path) -> None:
    _make_project(tmp_path, {"Cargo.toml": "[package]\nname = 'x'\n"})
    text = _render("Rust", tmp_path)
    assert "RUN cargo build --release\n" in text


def test_csharp_project_file_detection(tmp_path: Path) -> None:
    _make_project(tmp_path, {"App.csproj": "<Project/>\n"})
    profile = _profile("C# (.NET)")
    assert profile.detect(tmp_path)
    assert profile.find_manifest(tmp_path) == "App.csproj"
    assert profile.extract_dependencies(tmp_path) == set()
    assert _render("C# (.NET)", tmp_path) == (
        "FROM mcr.microsoft.com/dotnet/sdk:5.0\n"
        "WORKDIR /app\n"
        "COPY . /app\n"
        "RUN dotnet restore\n"
        "RUN dotnet build\n"
        'CMD ["dotnet", "run"]\n'
    )


def test_csharp_project_file_must_be_top_level(tmp_path: Path) -> None:
    _make_project(tmp_path, {"nested/App.sln": "\n"})
    assert not _profile("C# (.NET)").detect(tmp_path)


def test_cpp_detects_any_source_extension(tmp_path: Path) -> None:
    _make_project(tmp_path, {"lib/engine.cc": "#include <vector>\n"})
    profile = _profile("C++")
    assert profile.detect(tmp_path)
    assert profile.extract_dependencies(tmp_path) == set()
    assert "RUN g++ -o main *.cpp\n" in _render("C++", tmp_path)


def test_ruby_requires_and_gem_install(tmp_path: Path) -> None:
    _make_project(
        tmp_path,
        {"main.rb": "require 'sinatra'\nrequire \"json\"\nrequire './lib/helper'\nrequire_relative 'x'\n"},
    )
    profile = _profile("Ruby")
    assert profile.extract_dependencies(tmp_path) == {"sinatra", "json"}
    assert "RUN gem install json sinatra\n" in _render("Ruby", tmp_path)


def test_php_uses_apache_layout(tmp_path: Path) -> None:
    _make_project(tmp_path, {"index.php": "<?php\nrequire 'vendor/autoload.php';\ninclude('config.php');\n"})
    profile = _profile("PHP")
    assert profile.extract_dependencies(tmp_path) == {"vendor/autoload.php", "config.php"}
    text = _render("PHP", tmp_path)
    assert text.startswith("FROM php:7.4-apache\nWORKDIR /var/www/html\nCOPY . /var/www/html\n")
    assert "RUN composer require config.php vendor/autoload.php\n" in text
    assert text.endswith('CMD ["apache2-foreground"]\n')


def test_php_manifest_uses_composer_install(tmp_path: Path) -> None:
    _make_project(tmp_path, {"composer.json": "{}\n", "index.php": "<?php require 'x.php';\n"})
    assert "RUN composer install\n" in _render("PHP", tmp_path)


class _FixedExtractor:
    def __init__(self, deps: set[str]) -> None:
        self.deps = deps

    def extract(self, root: Path, warnings: list[str] | None = None) -> set[str]:
        return set(self.deps)


def test_extractor_can_be_substituted(tmp_path: Path) -> None:
    _make_project(tmp_path, {"main.py": "import ignored\n"})
    profile = EcosystemProfile(_profile("Python").rule, extractor=_FixedExtractor({"django"}))
    deps = profile.extract_dependencies(tmp_path)
    assert deps == {"django"}
    assert "pip install django\n" in profile.render_fragment(tmp_path, deps).text


def test_extraction_skips_unreadable_files(monkeypatch, tmp_path: Path) -> None:
    _make_project(tmp_path, {"ok.py": "import alpha\n", "bad.py": "import beta\n"})
    real_read_bytes = Path.read_bytes

    def fake_read_bytes(self: Path) -> bytes:
        if self.name == "bad.py":
            raise PermissionError(13, "Permission denied")
        return real_read_bytes(self)

    monkeypatch.setattr(Path, "read_bytes", fake_read_bytes)
    warnings: list[str] = []
    assert _profile("Python").extract_dependencies(tmp_path, warnings) == {"alpha"}
    assert any("bad.py" in w for w in warnings)
