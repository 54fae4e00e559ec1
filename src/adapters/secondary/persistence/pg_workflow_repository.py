import json

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.adapters.secondary.persistence.models import WorkflowModel
from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.events.event_queue import DEFAULT_MAX_PENDING_EVENTS
from src.domain.workflow.exceptions import PersistenceError, WorkflowNotFoundError
from src.ports.secondary.workflow_repository import IWorkflowRepository


class PostgresWorkflowRepository(IWorkflowRepository):
    def __init__(self, session: AsyncSession, max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS):
        self._session = session
        self._max_pending_events = max_pending_events

    async def save(self, workflow: Workflow) -> None:
        data = workflow.to_dict()
        try:
            model = await self._session.get(WorkflowModel, data["id"])
            if model is None:
                model = WorkflowModel(id=data["id"], created_at=workflow.created_at)
                self._session.add(model)

            model.name = workflow.name
            model.active = workflow.active
            model.nodes_json = json.dumps(data["nodes"])
            model.connections_json = json.dumps(data["connections"])
            model.description = workflow.description
            model.settings_json = json.dumps(data["settings"])
            model.tags_json = json.dumps(data["tags"])
            model.version = workflow.version
            model.updated_at = workflow.updated_at
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to save workflow '{data['id']}'",
                {"workflow_id": data["id"], "error": str(e)},
            ) from e

    async def get_by_id(self, workflow_id: str) -> Workflow | None:
        try:
            result = await self._session.execute(
                select(WorkflowModel).where(WorkflowModel.id == workflow_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to load workflow '{workflow_id}'",
                {"workflow_id": workflow_id, "error": str(e)},
            ) from e
        model = result.scalar_one_or_none()

        if not model:
            return None

        return self._to_domain(model)

    async def delete(self, workflow_id: str) -> None:
        try:
            model = await self._session.get(WorkflowModel, workflow_id)
            if model is None:
                raise WorkflowNotFoundError(workflow_id)
            await self._session.delete(model)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to delete workflow '{workflow_id}'",
                {"workflow_id": workflow_id, "error": str(e)},
            ) from e

    async def list_all(self, active: bool | None = None) -> list[Workflow]:
        stmt = select(WorkflowModel).order_by(WorkflowModel.updated_at.desc())
        if active is not None:
            stmt = stmt.where(WorkflowModel.active == active)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to list workflows", {"error": str(e)}) from e
        return [self._to_domain(model) for model in result.scalars().all()]

    def _to_domain(self, model: WorkflowModel) -> Workflow:
        return Workflow.from_dict(
            {
                "id": model.id,
                "name": model.name,
                "active": model.active,
                "nodes": json.loads(model.nodes_json),
                "connections": json.loads(model.connections_json),
                "description": model.description or "",
                "settings": json.loads(model.settings_json or "{}"),
                "tags": json.loads(model.tags_json or "[]"),
                "created_at": model.created_at.isoformat(),
                "updated_at": model.updated_at.isoformat(),
                "version": model.version,
            },
            self._max_pending_events,
        )
