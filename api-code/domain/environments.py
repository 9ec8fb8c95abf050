from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel, Field


class EnvironmentVerdict(str, Enum):
    ALLOWED = "allowed"
    REJECTED_PROD = "rejected_prod"
    REJECTED_UNKNOWN = "rejected_unknown"


class EnvironmentCheck(BaseModel):
    environment: str
    verdict: EnvironmentVerdict
    available: list[str] = Field(
        default_factory=list,
        description="Configured environment names, as configured on the repository.",
    )

    @property
    def allowed(self) -> bool:
        return self.verdict == EnvironmentVerdict.ALLOWED


def is_protected(environment: str, protected: Iterable[str] = ("prod",)) -> bool:
    return environment.strip().lower() in {name.lower() for name in protected}


def classify_environment(
    environment: str,
    available: Sequence[str],
    protected: Iterable[str] = ("prod",),
) -> EnvironmentCheck:
    if is_protected(environment, protected):
        return EnvironmentCheck(environment=environment, verdict=EnvironmentVerdict.REJECTED_PROD)

    known = {name.lower() for name in available}
    if environment.strip().lower() not in known:
        return EnvironmentCheck(
            environment=environment,
            verdict=EnvironmentVerdict.REJECTED_UNKNOWN,
            available=list(available),
        )
    return EnvironmentCheck(
        environment=environment,
        verdict=EnvironmentVerdict.ALLOWED,
        available=list(available),
    )
