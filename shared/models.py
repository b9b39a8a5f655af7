"""
Pydantic models for the Scan Bridge
Request/response validation and serialization
"""

import base64
import json
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ==================== PUBLIC API ====================

__all__ = [
    # Enums
    'ScanState',
    'PollOutcome',

    # Install flow
    'StateToken',
    'OAuthAccessResponse',
    'CredentialRecord',

    # Push delivery
    'PushMessage',
    'PushEnvelope',
    'ScanCommand',

    # Scanner
    'ScanJob',
    'ScanStatus',

    # Callback messages
    'SlackMessage',

    # Responses
    'ErrorResponse',
    'HealthResponse',
]


# ==================== ENUMS ====================

class ScanState(str, Enum):
    """Job status values reported by the scanner"""
    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class PollOutcome(str, Enum):
    """Terminal states of the polling state machine"""
    DONE = "done"
    ERROR = "error"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"  # Submission reported an application error


# ==================== INSTALL FLOW ====================

class StateToken(BaseModel):
    """
    Payload carried through the OAuth redirect as the encrypted `state` parameter.

    Wire format (before encryption): {"csrfToken": "...", "apiKey": "..."}
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    csrf_token: str = Field(..., alias="csrfToken", min_length=1)
    api_key: str | None = Field(default=None, alias="apiKey")

    def to_wire(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))


class OAuthAccessResponse(BaseModel):
    """Subset of the Slack oauth.v2.access response consumed by the install flow"""
    model_config = ConfigDict(extra="allow")

    ok: bool = True
    error: str | None = None
    team: dict[str, Any] = Field(default_factory=dict)
    authed_user: dict[str, Any] = Field(default_factory=dict)

    @property
    def team_id(self) -> str | None:
        return self.team.get("id")

    @property
    def user_id(self) -> str | None:
        return self.authed_user.get("id")

    @property
    def team_name(self) -> str:
        return self.team.get("name") or "Team"


class CredentialRecord(BaseModel):
    """
    Per-principal record in the credential vault.

    The encrypted API key and its IV are either both present or both absent.
    """
    team_id: str
    user_id: str
    user: dict[str, Any] = Field(default_factory=dict)
    team: dict[str, Any] = Field(default_factory=dict)
    api_key: str | None = None  # base64 ciphertext
    api_key_iv: bytes | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def check_ciphertext_and_iv(self) -> "CredentialRecord":
        if (self.api_key is None) != (self.api_key_iv is None):
            raise ValueError("api_key and api_key_iv must both be present or both be absent")
        return self

    @staticmethod
    def build_key(team_id: str, user_id: str) -> str:
        """
        User IDs are only unique within a team, so the record key joins both.
        """
        return f"{team_id}.{user_id}"

    @property
    def key(self) -> str:
        return self.build_key(self.team_id, self.user_id)

    @property
    def has_credential(self) -> bool:
        return self.api_key is not None


# ==================== PUSH DELIVERY ====================

class PushMessage(BaseModel):
    """Pub/Sub push message"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    data: str
    message_id: str | None = Field(default=None, alias="messageId")


class PushEnvelope(BaseModel):
    """Body of a push delivery: {"message": {"data": "<base64 JSON>"}, "subscription": "..."}"""
    model_config = ConfigDict(extra="allow")

    message: PushMessage
    subscription: str | None = None

    def decode_command(self) -> "ScanCommand":
        """Decode the base64 JSON payload into a ScanCommand."""
        raw = base64.b64decode(self.message.data).decode("utf-8")
        return ScanCommand.model_validate(json.loads(raw))


class ScanCommand(BaseModel):
    """Normalized slash command queued by the command webhook"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    team_id: str
    url: str
    response_url: str

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be empty")
        return v


# ==================== SCANNER ====================

class ScanJob(BaseModel):
    """
    In-flight scan job. Never persisted.

    Serialized as the scanner status request body: {"apiKey", "jobID", "insights"}.
    """
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(..., alias="apiKey", repr=False)
    job_id: str = Field(..., alias="jobID")
    insights: bool = True


class ScanStatus(BaseModel):
    """Scanner status response"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    job_id: str | None = None
    status: str
    url: str | None = None
    disposition: str | None = None
    insights: str | None = None
    resolved: bool = False
    screenshot_path: str | None = None
    error: bool | str | None = None

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        return v.strip().lower()


# ==================== CALLBACK MESSAGES ====================

class SlackMessage(BaseModel):
    """Message posted to a slash command response_url"""
    response_type: Literal["ephemeral", "in_channel"] = "ephemeral"
    text: str
    blocks: list[dict[str, Any]] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ==================== RESPONSES ====================

class ErrorResponse(BaseModel):
    """API error response"""
    error: str
    message: str


class HealthResponse(BaseModel):
    """Liveness response"""
    status: Literal["healthy"] = "healthy"
    service: str = "Scan Bridge"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
