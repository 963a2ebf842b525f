"""Coordinator for live, multi-user request workspaces.

Each socket is served by a single coroutine, so frames from one connection are
handled strictly in arrival order. Roster mutations never span an ``await``;
whenever a handler suspends (persistence, socket sends) it re-reads session
state afterwards instead of trusting a reference taken before the suspension.
"""
from __future__ import annotations

import asyncio
import secrets
from typing import Any, assert_never

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import BaseModel, ValidationError

from backend.core.actions import (
    AddCommentAction,
    AssignTaskAction,
    EditDocumentAction,
    JoinWorkspaceAction,
    LeaveWorkspaceAction,
    PingAction,
    UpdateStepAction,
    WorkspaceAction,
    WorkspaceEvent,
    parse_action,
)
from backend.core.schema import parse_assignee
from backend.domain import ActiveUser, ClientConnection, Transport, WorkspaceSession
from backend.infrastructure import StorageGateway, WorkspaceStore
from backend.infrastructure.websocket import WebSocketTransport


def _dump(model: BaseModel | None) -> dict[str, Any] | None:
    if model is None:
        return None
    return model.model_dump(mode="json", by_alias=True)


class WorkspaceCoordinator:
    """Tracks who is present in which request workspace and fans out changes."""

    def __init__(
        self,
        storage: StorageGateway,
        store: WorkspaceStore,
        *,
        path: str = "/ws/workspace",
        keepalive_interval: float = 30.0,
    ) -> None:
        self._storage = storage
        self._store = store
        self._path = path
        self._keepalive_interval = keepalive_interval

    # ------------------------------------------------------------------
    # transport wiring
    # ------------------------------------------------------------------
    def initialize(self, app: FastAPI) -> bool:
        """Mount the socket endpoint; returns ``False`` when real-time features are unavailable."""

        try:
            app.add_api_websocket_route(self._path, self.serve)
        except Exception:
            logger.exception("Failed to mount workspace socket at {}; continuing without real-time features", self._path)
            return False
        logger.info("Workspace socket listening at {}", self._path)
        return True

    async def serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        transport = WebSocketTransport(websocket)
        client_id = self.connect(transport)
        keepalive = asyncio.create_task(self._keepalive(transport))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text") or message.get("bytes")
                if not raw:
                    continue
                await self.handle_message(client_id, raw)
        except WebSocketDisconnect:
            logger.debug("Client {} disconnected", client_id)
        finally:
            keepalive.cancel()
            await self.disconnect(client_id)

    async def _keepalive(self, transport: Transport) -> None:
        while True:
            await asyncio.sleep(self._keepalive_interval)
            if not transport.is_open:
                return
            try:
                await transport.send_text(WorkspaceEvent(type="ping").to_json())
            except Exception as exc:
                logger.debug("Keepalive stopped: {}", exc)
                return

    # ------------------------------------------------------------------
    # connection lifecycle
    # ------------------------------------------------------------------
    def connect(self, transport: Transport) -> str:
        client_id = secrets.token_hex(12)
        self._store.add_connection(client_id, transport)
        logger.debug("Client {} connected", client_id)
        return client_id

    async def disconnect(self, client_id: str) -> None:
        """Leave every joined workspace on behalf of the client, then forget it."""

        connection = self._store.get_connection(client_id)
        if connection is None:
            return
        for request_id in sorted(connection.request_ids):
            connection.request_ids.discard(request_id)
            if connection.user_id is not None:
                await self._leave(connection.user_id, connection.user_name, request_id)
        self._store.remove_connection(client_id)

    async def handle_message(self, client_id: str, raw: str | bytes) -> None:
        try:
            action = parse_action(raw)
        except ValidationError as exc:
            logger.warning("Dropping malformed workspace frame from {}: {} error(s)", client_id, exc.error_count())
            return
        await self.dispatch(client_id, action)

    async def dispatch(self, client_id: str, action: WorkspaceAction) -> None:
        connection = self._store.get_connection(client_id)
        if connection is None:
            logger.warning("Action {} from unknown client {}", action.type, client_id)
            return

        match action:
            case JoinWorkspaceAction():
                await self._handle_join(connection, action)
            case LeaveWorkspaceAction():
                connection.request_ids.discard(action.request_id)
                await self._leave(action.user_id, action.user_name, action.request_id)
            case UpdateStepAction():
                await self._handle_update_step(action)
            case AssignTaskAction():
                await self._handle_assign_task(action)
            case AddCommentAction():
                await self._handle_add_comment(action)
            case EditDocumentAction():
                await self.broadcast(
                    action.request_id,
                    self._event("document_updated", action, action.payload),
                )
            case PingAction():
                await self._handle_ping(connection, action)
            case _:
                assert_never(action)

    # ------------------------------------------------------------------
    # read-only views
    # ------------------------------------------------------------------
    def get_workspace_state(self, request_id: int) -> WorkspaceSession | None:
        return self._store.get_session(request_id)

    def get_all_active_workspaces(self) -> list[WorkspaceSession]:
        return self._store.list_sessions()

    # ------------------------------------------------------------------
    # fan-out
    # ------------------------------------------------------------------
    async def broadcast(self, request_id: int, event: WorkspaceEvent) -> None:
        message = event.to_json()
        for connection in self._store.connections_for(request_id):
            await self._deliver(connection, message)

    async def _deliver(self, connection: ClientConnection, message: str) -> None:
        if not connection.transport.is_open:
            return
        try:
            await connection.transport.send_text(message)
        except Exception as exc:
            logger.warning("Could not deliver to client {}: {}", connection.client_id, exc)

    @staticmethod
    def _event(event_type: str, action: WorkspaceAction, payload: dict[str, Any] | list[Any] | str) -> WorkspaceEvent:
        return WorkspaceEvent(
            type=event_type,
            user_id=action.user_id,
            request_id=action.request_id,
            user_name=action.user_name,
            payload=payload,
        )

    # ------------------------------------------------------------------
    # action handlers
    # ------------------------------------------------------------------
    async def _handle_join(self, connection: ClientConnection, action: JoinWorkspaceAction) -> None:
        request_id = action.request_id
        connection.user_id = action.user_id
        connection.user_name = action.user_name
        connection.request_ids.add(request_id)

        session = self._store.ensure_session(request_id)
        existing = session.find_user(action.user_id)
        if existing is not None:
            existing.touch()
        else:
            try:
                user = await self._storage.get_user(action.user_id)
            except Exception:
                logger.exception("Failed to load user {} joining request {}", action.user_id, request_id)
                user = None
            session = self._store.ensure_session(request_id)
            if user is not None:
                present = session.find_user(user.id)
                if present is None:
                    session.active_users.append(ActiveUser.from_user(user))
                else:
                    present.touch()
            else:
                logger.warning("User {} not found; joined request {} without roster entry", action.user_id, request_id)
        session.touch()

        await self.broadcast(request_id, self._event("user_joined", action, {"activeUsers": session.roster_payload()}))

        try:
            request = await self._storage.get_request(request_id)
            steps = await self._storage.get_steps_by_request_id(request_id)
            messages = await self._storage.get_messages_by_request_id(request_id)
        except Exception:
            logger.exception("Failed to load workspace state for request {}", request_id)
            return

        current = self._store.get_session(request_id)
        snapshot = WorkspaceEvent(
            type="workspace_state",
            request_id=request_id,
            payload={
                "request": _dump(request),
                "steps": [_dump(step) for step in steps],
                "messages": [_dump(message) for message in messages if message.type == "comment"],
                "activeUsers": current.roster_payload() if current else [],
            },
        )
        await self._deliver(connection, snapshot.to_json())

    async def _leave(self, user_id: int, user_name: str | None, request_id: int) -> None:
        session = self._store.get_session(request_id)
        if session is None:
            return

        session.remove_user(user_id)
        session.touch()
        if not session.active_users:
            self._store.delete_session(request_id)
            logger.debug("Workspace {} closed", request_id)
            return

        await self.broadcast(
            request_id,
            WorkspaceEvent(
                type="user_left",
                user_id=user_id,
                user_name=user_name,
                request_id=request_id,
                payload={"activeUsers": session.roster_payload()},
            ),
        )

    async def _handle_update_step(self, action: UpdateStepAction) -> None:
        payload = action.payload
        try:
            step = await self._storage.get_step(payload.step_id)
            if step is None or step.request_id != action.request_id:
                logger.debug("Ignoring update of step {} outside request {}", payload.step_id, action.request_id)
                return
            updated = await self._storage.update_step(step.id, status=payload.status)
        except Exception:
            logger.exception("Error updating step {}", payload.step_id)
            return
        if updated is None:
            return

        await self.broadcast(
            action.request_id,
            self._event("step_updated", action, {"step": _dump(updated), "notes": payload.notes}),
        )

    async def _handle_assign_task(self, action: AssignTaskAction) -> None:
        payload = action.payload
        try:
            step = await self._storage.get_step(payload.step_id)
            if step is None or step.request_id != action.request_id:
                logger.debug("Ignoring assignment of step {} outside request {}", payload.step_id, action.request_id)
                return
            assignee = parse_assignee(payload.assigned_to)
            updated = await self._storage.update_step(step.id, assigned_to=str(assignee))
        except Exception:
            logger.exception("Error assigning step {}", payload.step_id)
            return
        if updated is None:
            return

        await self.broadcast(action.request_id, self._event("task_assigned", action, {"step": _dump(updated)}))

    async def _handle_add_comment(self, action: AddCommentAction) -> None:
        try:
            message = await self._storage.create_message(
                request_id=action.request_id,
                sender_id=str(action.user_id),
                content=action.payload.content,
                type="comment",
            )
        except Exception:
            logger.exception("Error adding comment to request {}", action.request_id)
            return

        await self.broadcast(
            action.request_id,
            self._event(
                "comment_added",
                action,
                {"content": message.content, "timestamp": message.timestamp.isoformat()},
            ),
        )

    async def _handle_ping(self, connection: ClientConnection, action: PingAction) -> None:
        for request_id in connection.request_ids:
            session = self._store.get_session(request_id)
            if session is None:
                continue
            active = session.find_user(action.user_id)
            if active is not None:
                active.touch()
            session.touch()

        await self._deliver(connection, WorkspaceEvent(type="pong").to_json())
