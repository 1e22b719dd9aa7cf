"""
Nomination wizard: state container, step controllers and resume resolver.
"""

from .controllers import (
    CONTROLLERS,
    SectionAController,
    SectionBController,
    SectionCController,
    SectionDController,
    SectionEController,
    StepController,
    StepOutcome,
    StepResult,
    controller_for_step,
)
from .resume import ContinuationResolver, ResumeOutcome, compute_resume_step
from .state import CancellationToken, NominationWizard, NominationWizardState, Notice

__all__ = [
    "CONTROLLERS",
    "CancellationToken",
    "ContinuationResolver",
    "NominationWizard",
    "NominationWizardState",
    "Notice",
    "ResumeOutcome",
    "SectionAController",
    "SectionBController",
    "SectionCController",
    "SectionDController",
    "SectionEController",
    "StepController",
    "StepOutcome",
    "StepResult",
    "compute_resume_step",
    "controller_for_step",
]
