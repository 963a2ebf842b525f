"""Wire format for the collaborative workspace socket.

Inbound frames are ``WorkspaceAction`` values, a union discriminated on
``type`` with one payload model per variant. Outbound frames are
``WorkspaceEvent`` values.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import ConfigDict, Field, TypeAdapter

from backend.core.schema import CamelModel, utcnow


class EmptyPayload(CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UpdateStepPayload(CamelModel):
    step_id: int
    status: str
    notes: str | None = None


class AssignTaskPayload(CamelModel):
    step_id: int
    assigned_to: str


class AddCommentPayload(CamelModel):
    content: str


# Opaque editing delta, relayed exactly as the client sent it.
EditDocumentPayload = Union[dict[str, Any], list[Any], str]


class _ActionBase(CamelModel):
    user_id: int
    request_id: int
    user_name: str = ""
    timestamp: datetime | None = None


class JoinWorkspaceAction(_ActionBase):
    type: Literal["join_workspace"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class LeaveWorkspaceAction(_ActionBase):
    type: Literal["leave_workspace"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class UpdateStepAction(_ActionBase):
    type: Literal["update_step"]
    payload: UpdateStepPayload


class AssignTaskAction(_ActionBase):
    type: Literal["assign_task"]
    payload: AssignTaskPayload


class AddCommentAction(_ActionBase):
    type: Literal["add_comment"]
    payload: AddCommentPayload


class EditDocumentAction(_ActionBase):
    type: Literal["edit_document"]
    payload: EditDocumentPayload = Field(default_factory=dict)


class PingAction(_ActionBase):
    type: Literal["ping"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


WorkspaceAction = Annotated[
    Union[
        JoinWorkspaceAction,
        LeaveWorkspaceAction,
        UpdateStepAction,
        AssignTaskAction,
        AddCommentAction,
        EditDocumentAction,
        PingAction,
    ],
    Field(discriminator="type"),
]

_action_adapter: TypeAdapter[WorkspaceAction] = TypeAdapter(WorkspaceAction)


def parse_action(raw: str | bytes) -> WorkspaceAction:
    """Decode a JSON frame; raises ``pydantic.ValidationError`` when malformed."""

    return _action_adapter.validate_json(raw)


EventType = Literal[
    "user_joined",
    "user_left",
    "workspace_state",
    "step_updated",
    "task_assigned",
    "comment_added",
    "document_updated",
    "pong",
    "ping",
]


class WorkspaceEvent(CamelModel):
    type: EventType
    request_id: int | None = None
    user_id: int | None = None
    user_name: str | None = None
    payload: dict[str, Any] | list[Any] | str = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
