from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EvaluationSubject(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    id: str | None = None
    properties: dict[str, Any] | None = None


class EvaluationAction(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    properties: dict[str, Any] | None = None


class EvaluationResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    id: str | None = None
    properties: dict[str, Any] | None = None


class EvaluationRequest(BaseModel):
    subject: EvaluationSubject | None = None
    action: EvaluationAction | None = None
    resource: EvaluationResource | None = None
    context: dict[str, Any] | None = None


class EvaluationResponse(BaseModel):
    decision: bool
    context: dict[str, Any] = Field(default_factory=dict)
    grant_id: str | None = None


class EvaluationsOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    evaluations_semantic: str = "execute_all"


class EvaluationsRequest(EvaluationRequest):
    evaluations: list[EvaluationRequest] = Field(default_factory=list)
    options: EvaluationsOptions = Field(default_factory=EvaluationsOptions)


class EvaluationsResponse(BaseModel):
    evaluations: list[EvaluationResponse]


class PolicyDecisionPointMetadata(BaseModel):
    policy_decision_point: str
    access_evaluation_endpoint: str
    access_evaluations_endpoint: str
    capabilities: list[str] = Field(default_factory=list)
