"""Skill registry and unlock gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from voxel_scout.progress import PlayerProgress
from voxel_scout.skills.context import SkillBehavior, SkillContext, SkillResult


@dataclass(frozen=True, slots=True)
class SkillRequirement:
    """Unlock condition: a minimum level and/or a progress flag that must be set."""

    min_level: int | None = None
    flag: str | None = None


@dataclass(slots=True)
class SkillDescriptor:
    name: str
    behavior: SkillBehavior
    requirement: SkillRequirement | None = None
    description: str = ""
    args: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GateDecision:
    ok: bool
    reason: str | None = None


class SkillRegistry:
    """Maps skill names to behaviors and decides who may run them.

    Names are case-insensitive. An explicit unlock in the actor's progress
    always wins over level and flag requirements.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._skills: dict[str, SkillDescriptor] = {}
        self._logger = logger or logging.getLogger("voxel_scout.skills")

    def register(
        self,
        name: str,
        behavior: SkillBehavior,
        requirement: SkillRequirement | None = None,
        *,
        description: str = "",
        args: Sequence[str] = (),
        examples: Sequence[str] = (),
    ) -> SkillDescriptor:
        descriptor = SkillDescriptor(
            name=name.lower(),
            behavior=behavior,
            requirement=requirement,
            description=description,
            args=tuple(args),
            examples=tuple(examples),
        )
        self._skills[descriptor.name] = descriptor
        return descriptor

    def get(self, name: str) -> SkillDescriptor | None:
        return self._skills.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._skills

    def __iter__(self) -> Iterator[SkillDescriptor]:
        return iter(list(self._skills.values()))

    def __len__(self) -> int:
        return len(self._skills)

    def check(self, name: str, progress: PlayerProgress) -> GateDecision:
        entry = self.get(name)
        if entry is None:
            return GateDecision(ok=False, reason="unknown")

        if name.lower() in {skill.lower() for skill in progress.unlocked_skills}:
            return GateDecision(ok=True)

        requirement = entry.requirement
        if requirement is None:
            return GateDecision(ok=True)
        if requirement.min_level is not None and progress.level < requirement.min_level:
            return GateDecision(ok=False, reason=f"requires level {requirement.min_level}")
        if requirement.flag and not progress.flags.get(requirement.flag):
            return GateDecision(ok=False, reason=f"requires {requirement.flag}")
        return GateDecision(ok=True)

    async def dispatch(self, name: str, ctx: SkillContext, args: Sequence[str] = ()) -> SkillResult:
        """Run ``name`` if the gate allows it.

        Unknown skills resolve to ``blocked``, gate rejections to ``locked``;
        both are reported through ``ctx.say``.
        """
        decision = self.check(name, ctx.progress)
        if not decision.ok:
            if decision.reason == "unknown":
                ctx.notify(f"[SYSTEM] Unknown skill: {name}")
                return SkillResult.BLOCKED
            ctx.notify(f"[SYSTEM] {name.upper()} locked: {decision.reason}")
            self._logger.info("skill_locked", extra={"skill": name, "reason": decision.reason})
            return SkillResult.LOCKED

        entry = self._skills[name.lower()]
        self._logger.info("skill_dispatched", extra={"skill": entry.name, "skill_args": list(args)})
        return await entry.behavior(ctx, *args)
