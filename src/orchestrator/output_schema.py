"""
src/orchestrator/output_schema.py

The shape of a final answer (CopilotOutput) and the validator the router runs on it.

Bounds are hard limits: a 7th metric is a validation failure, not something we trim.
Every string is stripped first and must still be non-empty.
"""


from typing import Annotated, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from copilot_config import Confidence, SourceType, Trend


MAX_ANSWER_CHARS = 2500
MAX_METRICS = 6
MAX_ACTIONS = 3
MAX_ASSUMPTIONS = 8
MAX_WARNINGS = 10
MAX_FOLLOWUPS = 3


class _Strict(BaseModel):

    model_config = ConfigDict(str_strip_whitespace=True, str_min_length=1, use_enum_values=True)


NonEmpty = Annotated[str, Field(min_length=1)]


class MetricCard(_Strict):

    label: str
    value: str
    unit: Optional[str] = None
    trend: Optional[Trend] = None
    delta: Optional[str] = None
    note: Optional[str] = None


class ActionCard(_Strict):

    title: str
    rationale: str
    expected_impact: str
    confidence: Confidence
    assumptions: List[NonEmpty] = Field(default_factory=list, max_length=MAX_ASSUMPTIONS)


class Source(_Strict):

    type: SourceType
    detail: str


class CopilotOutput(_Strict):

    answer_markdown: str = Field(max_length=MAX_ANSWER_CHARS)
    metrics: List[MetricCard] = Field(default_factory=list, max_length=MAX_METRICS)
    actions: List[ActionCard] = Field(default_factory=list, max_length=MAX_ACTIONS)
    sources: List[Source] = Field(min_length=1)
    warnings: List[NonEmpty] = Field(default_factory=list, max_length=MAX_WARNINGS)
    followups: List[NonEmpty] = Field(default_factory=list, max_length=MAX_FOLLOWUPS)


class ValidationIssue(BaseModel):

    path: str
    message: str

    def __str__(self) -> str:

        return f"{self.path}: {self.message}"


class ValidationOutcome(BaseModel):

    output: Optional[CopilotOutput] = None
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:

        return self.output is not None


def validate(candidate: Any) -> ValidationOutcome:
    """
    Check parsed JSON against CopilotOutput.
    Returns the defaulted output on success, otherwise every failing field path and its reason.
    """

    try:
        return ValidationOutcome(output=CopilotOutput.model_validate(candidate))
    except ValidationError as e:
        issues = [
            ValidationIssue(path=".".join(str(p) for p in err["loc"]) or "(root)", message=err["msg"])
            for err in e.errors()
        ]
        return ValidationOutcome(issues=issues)
