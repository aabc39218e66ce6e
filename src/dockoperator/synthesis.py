from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from dockoperator.ecosystems import EcosystemProfile, Fragment, default_registry
from dockoperator.models import Outcome, StageReport, SynthesisResult

logger = logging.getLogger(__name__)

STAGE_BANNER = "# ===== {name} Stage ====="


def detect_ecosystems(
    root: Path, registry: Sequence[EcosystemProfile], warnings: list[str] | None = None
) -> list[EcosystemProfile]:
    return [profile for profile in registry if profile.detect(root, warnings)]


def stage_banner(name: str) -> str:
    return STAGE_BANNER.format(name=name)


def assemble_artifact(named_fragments: Sequence[tuple[str, Fragment]]) -> str:
    if len(named_fragments) == 1:
        return named_fragments[0][1].text
    return "".join(f"\n{stage_banner(name)}\n{fragment.text}\n" for name, fragment in named_fragments)


def synthesize(target: Path | str, registry: Sequence[EcosystemProfile] | None = None) -> SynthesisResult:
    root = Path(target)
    try:
        is_dir = root.is_dir()
        reason = "is not a directory" if root.exists() else "does not exist"
    except OSError as exc:
        is_dir = False
        reason = f"cannot be accessed ({exc.strerror or exc})"
    if not is_dir:
        return SynthesisResult(
            target=str(root),
            outcome=Outcome.INVALID_TARGET,
            message=f"Invalid directory: {root} {reason}",
        )

    if registry is None:
        registry = default_registry()

    warnings: list[str] = []
    matched = detect_ecosystems(root, registry, warnings)
    if not matched:
        return SynthesisResult(
            target=str(root),
            outcome=Outcome.UNSUPPORTED_PROJECT,
            message="No supported ecosystem detected (unsupported project)",
            warnings=list(dict.fromkeys(warnings)),
        )

    logger.debug("Detected ecosystems: %s", ", ".join(p.name for p in matched))
    stages: list[StageReport] = []
    fragments: list[tuple[str, Fragment]] = []
    for profile in matched:
        deps = profile.extract_dependencies(root, warnings)
        fragment = profile.render_fragment(root, deps, warnings)
        fragments.append((profile.name, fragment))
        stages.append(
            StageReport(
                name=profile.name,
                dependencies=sorted(deps),
                manifest=fragment.manifest,
                ambiguous=fragment.ambiguous,
            )
        )

    if len(matched) == 1:
        message = f"Detected {matched[0].name}"
    else:
        message = f"Detected {len(matched)} ecosystems; generated a multi-stage recipe"
    return SynthesisResult(
        target=str(root),
        outcome=Outcome.SUCCESS,
        message=message,
        stages=stages,
        artifact=assemble_artifact(fragments),
        warnings=list(dict.fromkeys(warnings)),
    )
