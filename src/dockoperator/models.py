from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Outcome(StrEnum):
    SUCCESS = "success"
    INVALID_TARGET = "invalid_target"
    UNSUPPORTED_PROJECT = "unsupported_project"


class BuildVariant(BaseModel):
    when: str | None = None
    steps: list[str] = Field(default_factory=list)
    cmd: list[str] | None = None


class EcosystemRule(BaseModel):
    name: str
    manifests: list[str] = Field(default_factory=list)
    manifest_globs: list[str] = Field(default_factory=list)
    extensions: list[str]
    import_patterns: list[str] = Field(default_factory=list)
    base_image: str
    workdir: str = "/app"
    manifest_install: str | None = None
    list_install: str | None = None
    build: list[BuildVariant] = Field(default_factory=list)
    build_placeholder: str | None = None
    cmd: list[str] | None = None


class RuleSet(BaseModel):
    version: str
    ecosystems: list[EcosystemRule] = Field(default_factory=list)


class StageReport(BaseModel):
    name: str
    dependencies: list[str] = Field(default_factory=list)
    manifest: str | None = None
    ambiguous: bool = False


class SynthesisResult(BaseModel):
    target: str
    outcome: Outcome
    message: str = ""
    stages: list[StageReport] = Field(default_factory=list)
    artifact: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    @property
    def ecosystems(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)
