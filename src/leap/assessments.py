"""The three fixed assessment modules and their scoring rules.

Learn: Every module has its own answer scale and a "positive" threshold.
A module's score is the share of answers at or above the threshold:

  ai-readiness         1-5   positive = 4 or 5
  leadership           1-5   positive = 4 or 5
  employee-experience  0-10  positive = 7 to 10 (NPS-style favourable)

The question corpus itself is static frontend config; the backend only
needs the scale to validate and score answers.
"""

from dataclasses import dataclass
from enum import Enum


class ModuleId(str, Enum):
    AI_READINESS = "ai-readiness"
    LEADERSHIP = "leadership"
    EMPLOYEE_EXPERIENCE = "employee-experience"


@dataclass(frozen=True)
class Assessment:
    module: ModuleId
    title: str
    scale_min: int
    scale_max: int
    positive_threshold: int

    def accepts(self, value: int) -> bool:
        return self.scale_min <= value <= self.scale_max

    def is_positive(self, value: int) -> bool:
        return value >= self.positive_threshold


ASSESSMENTS: dict[ModuleId, Assessment] = {
    ModuleId.AI_READINESS: Assessment(
        ModuleId.AI_READINESS, "AI Readiness", 1, 5, 4
    ),
    ModuleId.LEADERSHIP: Assessment(
        ModuleId.LEADERSHIP, "Leadership", 1, 5, 4
    ),
    ModuleId.EMPLOYEE_EXPERIENCE: Assessment(
        ModuleId.EMPLOYEE_EXPERIENCE, "Employee Experience", 0, 10, 7
    ),
}


def assessment_for(module: ModuleId | str) -> Assessment:
    """Look up a module by id. Raises ValueError for unknown ids."""
    return ASSESSMENTS[ModuleId(module)]


def positive_percentage(values: list[int], module: ModuleId | str) -> float:
    """Share of answers at or above the module's threshold, 0-100."""
    if not values:
        return 0.0
    assessment = assessment_for(module)
    positive = sum(1 for v in values if assessment.is_positive(v))
    return positive / len(values) * 100
