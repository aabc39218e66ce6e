from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path

import yaml  # type: ignore[import-untyped]

from dockoperator.models import BuildVariant, EcosystemRule, RuleSet

DEP_GROUP = "dep"


@dataclass(frozen=True)
class CompiledEcosystemRule:
    name: str
    manifests: tuple[str, ...]
    manifest_globs: tuple[str, ...]
    extensions: tuple[str, ...]
    import_patterns: tuple[re.Pattern[str], ...]
    base_image: str
    workdir: str
    manifest_install: str | None
    list_install: str | None
    build: tuple[BuildVariant, ...]
    build_placeholder: str | None
    cmd: tuple[str, ...] | None


def _merge_rulesets(rulesets: Sequence[RuleSet]) -> RuleSet:
    merged: dict[str, EcosystemRule] = {}
    versions: list[str] = []

    for rs in rulesets:
        versions.append(rs.version)
        for rule in rs.ecosystems:
            # dict keeps the original slot when a later file redefines a name
            merged[rule.name] = rule

    return RuleSet(version="+".join(versions), ecosystems=list(merged.values()))


def _load_yaml_rule_file(raw: str, source: str) -> RuleSet:
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {source}: {exc}") from exc
    return RuleSet.model_validate(parsed)


def load_builtin_ruleset() -> RuleSet:
    rules_dir = resources.files("dockoperator.data.ecosystems")
    files = sorted([p for p in rules_dir.iterdir() if p.name.endswith(".yaml")], key=lambda p: p.name)
    return _merge_rulesets([_load_yaml_rule_file(p.read_text(encoding="utf-8"), p.name) for p in files])


def load_rule_file(path: Path) -> RuleSet:
    return _load_yaml_rule_file(path.read_text(encoding="utf-8"), str(path))


def _compile_pattern(owner: str, pattern: str) -> re.Pattern[str]:
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"{owner}: invalid import pattern {pattern!r}: {exc}") from exc
    if DEP_GROUP not in compiled.groupindex:
        raise ValueError(f"{owner}: import pattern {pattern!r} has no (?P<{DEP_GROUP}>...) group")
    return compiled


def compile_rule(rule: EcosystemRule) -> CompiledEcosystemRule:
    for ext in rule.extensions:
        if not ext.startswith("."):
            raise ValueError(f"{rule.name}: extension {ext!r} must start with '.'")
    return CompiledEcosystemRule(
        name=rule.name,
        manifests=tuple(rule.manifests),
        manifest_globs=tuple(rule.manifest_globs),
        extensions=tuple(rule.extensions),
        import_patterns=tuple(_compile_pattern(rule.name, p) for p in rule.import_patterns),
        base_image=rule.base_image,
        workdir=rule.workdir,
        manifest_install=rule.manifest_install,
        list_install=rule.list_install,
        build=tuple(rule.build),
        build_placeholder=rule.build_placeholder,
        cmd=tuple(rule.cmd) if rule.cmd is not None else None,
    )


@lru_cache(maxsize=1)
def load_compiled_builtin_rules() -> tuple[CompiledEcosystemRule, ...]:
    return tuple(compile_rule(rule) for rule in load_builtin_ruleset().ecosystems)


def load_compiled_rules(extra_files: Sequence[Path] = ()) -> tuple[CompiledEcosystemRule, ...]:
    if not extra_files:
        return load_compiled_builtin_rules()
    rulesets = [load_builtin_ruleset(), *(load_rule_file(p) for p in extra_files)]
    return tuple(compile_rule(rule) for rule in _merge_rulesets(rulesets).ecosystems)


def ruleset_summary(ruleset: RuleSet) -> str:
    names = ", ".join(rule.name for rule in ruleset.ecosystems)
    return f"{ruleset.version}: {len(ruleset.ecosystems)} ecosystems ({names})"
