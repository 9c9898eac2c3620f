"""Gated, named behaviors built from primitive commands."""

from .commands import render_skill_info, render_skill_overview, try_dispatch_skill
from .context import SkillBehavior, SkillContext, SkillResult
from .registry import GateDecision, SkillDescriptor, SkillRegistry, SkillRequirement

__all__ = [
    "GateDecision",
    "SkillBehavior",
    "SkillContext",
    "SkillDescriptor",
    "SkillRegistry",
    "SkillRequirement",
    "SkillResult",
    "render_skill_info",
    "render_skill_overview",
    "try_dispatch_skill",
]
