from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dockoperator import probe
from dockoperator.models import BuildVariant
from dockoperator.rules import CompiledEcosystemRule, load_compiled_rules

logger = logging.getLogger(__name__)

DEFAULT_BUILD_PLACEHOLDER = "# No build command could be determined for this project"


class DependencyExtractor(Protocol):
    def extract(self, root: Path, warnings: list[str] | None = None) -> set[str]: ...


class LinePatternExtractor:
    """Best-effort import scanner.

    Each line of every recognized source file is tested against the patterns
    in order; the first match contributes its ``dep`` group. Multi-line
    imports, aliases and conditional imports are missed, and commented-out
    code or string literals shaped like imports are picked up.
    """

    def __init__(self, extensions: Sequence[str], patterns: Sequence[re.Pattern[str]]) -> None:
        self.extensions = frozenset(extensions)
        self.patterns = tuple(patterns)

    def _match(self, line: str) -> str | None:
        for pattern in self.patterns:
            match = pattern.search(line)
            if match:
                return match.group("dep") or None
        return None

    def extract(self, root: Path, warnings: list[str] | None = None) -> set[str]:
        deps: set[str] = set()
        if not self.patterns:
            return deps
        for path in probe.walk_files(root, warnings):
            if path.suffix not in self.extensions:
                continue
            text = probe.read_source(path, warnings)
            if text is None:
                continue
            for line in text.splitlines():
                dep = self._match(line)
                if dep:
                    deps.add(dep)
        return deps


@dataclass
class Fragment:
    text: str
    manifest: str | None
    ambiguous: bool


class EcosystemProfile:
    def __init__(self, rule: CompiledEcosystemRule, extractor: DependencyExtractor | None = None) -> None:
        self.rule = rule
        self.extractor = extractor or LinePatternExtractor(rule.extensions, rule.import_patterns)

    @property
    def name(self) -> str:
        return self.rule.name

    def __repr__(self) -> str:
        return f"EcosystemProfile({self.name!r})"

    def find_manifest(self, root: Path, warnings: list[str] | None = None) -> str | None:
        for name in self.rule.manifests:
            if probe.exists(root, name, warnings):
                return name
        for pattern in self.rule.manifest_globs:
            found = probe.find_glob(root, pattern, warnings)
            if found:
                return found
        return None

    def detect(self, root: Path, warnings: list[str] | None = None) -> bool:
        manifest = self.find_manifest(root, warnings)
        if manifest:
            logger.debug("%s detected via manifest %s", self.name, manifest)
            return True
        if probe.has_extension(root, self.rule.extensions, warnings):
            logger.debug("%s detected via source files", self.name)
            return True
        return False

    def extract_dependencies(self, root: Path, warnings: list[str] | None = None) -> set[str]:
        return self.extractor.extract(root, warnings)

    def _select_build(self, root: Path, warnings: list[str] | None = None) -> BuildVariant | None:
        for variant in self.rule.build:
            if variant.when is None or probe.exists(root, variant.when, warnings):
                return variant
        return None

    def render_fragment(
        self, root: Path, deps: set[str], warnings: list[str] | None = None
    ) -> Fragment:
        rule = self.rule
        lines = [
            f"FROM {rule.base_image}",
            f"WORKDIR {rule.workdir}",
            f"COPY . {rule.workdir}",
        ]

        # A present manifest is authoritative; extracted deps only matter without one.
        manifest = self.find_manifest(root, warnings)
        if manifest is not None:
            if rule.manifest_install:
                lines.append(f"RUN {rule.manifest_install}")
        elif deps and rule.list_install:
            lines.append(f"RUN {rule.list_install} {' '.join(sorted(deps))}")

        variant = self._select_build(root, warnings)
        ambiguous = bool(rule.build) and variant is None
        if variant is not None:
            lines.extend(f"RUN {step}" for step in variant.steps)
        elif ambiguous:
            placeholder = rule.build_placeholder or DEFAULT_BUILD_PLACEHOLDER
            lines.append(placeholder if placeholder.startswith("#") else f"# {placeholder}")
            logger.info("%s: no build tooling found, emitting placeholder", self.name)

        cmd = variant.cmd if variant is not None and variant.cmd is not None else rule.cmd
        if cmd:
            lines.append(f"CMD {json.dumps(list(cmd), ensure_ascii=False)}")

        return Fragment(text="\n".join(lines) + "\n", manifest=manifest, ambiguous=ambiguous)


def default_registry(extra_rule_files: Sequence[Path] = ()) -> list[EcosystemProfile]:
    return [EcosystemProfile(rule) for rule in load_compiled_rules(extra_rule_files)]


def registry_names(registry: Sequence[EcosystemProfile]) -> list[str]:
    return [profile.name for profile in registry]
