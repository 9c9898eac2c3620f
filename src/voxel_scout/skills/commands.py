"""Text interface for skills: ``skill <name> [args]``, ``skill info <name>`` and the overview."""

from __future__ import annotations

import re

from voxel_scout.progress import PlayerProgress
from voxel_scout.skills.context import SkillContext, SkillResult
from voxel_scout.skills.registry import SkillDescriptor, SkillRegistry

HELP_WORDS = frozenset({"", "help", "list", "?", "ls", "show"})

_WHITESPACE = re.compile(r"\s+")


def _clean(text: str | None) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def _status(registry: SkillRegistry, name: str, progress: PlayerProgress) -> str:
    decision = registry.check(name, progress)
    return "available" if decision.ok else f"locked ({decision.reason})"


def render_skill_overview(registry: SkillRegistry, progress: PlayerProgress) -> str:
    def sort_key(entry: SkillDescriptor) -> tuple[int, str]:
        return (0 if registry.check(entry.name, progress).ok else 1, entry.name)

    rows = []
    for entry in sorted(registry, key=sort_key):
        args = _clean(" ".join(entry.args))
        head = f"- {entry.name}{' ' + args if args else ''}: {_status(registry, entry.name, progress)}"
        row = f"{head}\n  {_clean(entry.description)}"
        if entry.examples:
            row += f"\n  e.g., {entry.examples[0]}"
        rows.append(row)

    return "\n".join(
        [
            f"[SKILLS] Level {progress.level}",
            *rows,
            "Tip: use `skill <name> ...` to invoke; `skill info <name>` for details.",
        ]
    )


def render_skill_info(registry: SkillRegistry, progress: PlayerProgress, name: str) -> str:
    entry = registry.get(name)
    if entry is None:
        return f"[SYSTEM] Unknown skill: {name}"

    args = _clean(" ".join(entry.args))
    examples = "\n".join(f"  - {example}" for example in entry.examples) or "  (no examples)"
    return "\n".join(
        [
            f"[SKILL] {entry.name}{' ' + args if args else ''}",
            f"Status: {_status(registry, entry.name, progress)}",
            f"About: {_clean(entry.description) or '(no description)'}",
            f"Examples:\n{examples}",
        ]
    )


async def try_dispatch_skill(raw: str, registry: SkillRegistry, ctx: SkillContext) -> SkillResult | None:
    """Handle one ``skill ...`` line; ``None`` means the text is not a skill command."""
    lowered = _clean(raw).lower()

    if lowered in ("skill", "skills"):
        ctx.notify(render_skill_overview(registry, ctx.progress))
        return SkillResult.DONE

    if not lowered.startswith("skill "):
        return None

    rest = lowered[len("skill ") :].strip()
    if rest in HELP_WORDS:
        ctx.notify(render_skill_overview(registry, ctx.progress))
        return SkillResult.DONE

    parts = rest.split()
    if parts[0] == "info":
        if len(parts) == 1:
            ctx.notify("[SYSTEM] Usage: skill info <skillname>")
        else:
            ctx.notify(render_skill_info(registry, ctx.progress, " ".join(parts[1:])))
        return SkillResult.DONE

    name, args = parts[0], parts[1:]
    result = await registry.dispatch(name, ctx, args)
    if result == SkillResult.BLOCKED and name in registry:
        ctx.notify(f"[SYSTEM] {name} paused: re-scan or reroute needed")
    return result
