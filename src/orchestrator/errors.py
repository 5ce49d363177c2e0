"""
src/orchestrator/errors.py

Fatal errors of one orchestrator run. Everything recoverable (unknown tool, bad
arguments, tool exceptions) is fed back to the model instead and never shows up here.
"""


from typing import List, Optional


class AgentError(RuntimeError):
    """Base class: the message is safe to show to the user."""


class EmptyModelResponse(AgentError):

    def __init__(self):

        super().__init__("Empty response from LLM")


class ModelProviderError(AgentError):
    """The provider call itself failed (network, auth, rate limit...)."""


class ModelTimeout(AgentError):

    def __init__(self, round_no: int, timeout_s: Optional[float]):

        limit = f"within {timeout_s:g}s" if timeout_s else "in time"
        super().__init__(f"Model did not respond {limit} (round {round_no})")
        self.round_no = round_no
        self.timeout_s = timeout_s


class AgentCancelled(AgentError):

    def __init__(self, round_no: int):

        super().__init__(f"Request cancelled before round {round_no}")
        self.round_no = round_no


class MaxRoundsExceeded(AgentError):

    def __init__(self, rounds: int):

        super().__init__("Agent exceeded maximum tool-calling rounds")
        self.rounds = rounds


class OutputParseError(AgentError):

    def __init__(self, reason: str, raw: str):

        super().__init__(f"LLM output is not valid JSON: {reason}\n\nRaw output:\n{raw[:500]}")
        self.raw = raw


class OutputValidationError(AgentError):

    def __init__(self, issues: List[str]):

        super().__init__(f"LLM output failed schema validation: {'; '.join(issues)}")
        self.issues = issues


class SourceCoverageError(AgentError):

    def __init__(self, missing: List[str], detail: Optional[str] = None):

        super().__init__(detail or f"Answer does not cite every tool it used: {', '.join(missing)}")
        self.missing = missing
