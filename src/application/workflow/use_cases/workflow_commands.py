import time
from contextlib import asynccontextmanager
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from src.application.workflow.commands import (
    STRUCTURAL_COMMANDS,
    ActivateWorkflow,
    AddConnection,
    AddNode,
    CreateWorkflow,
    DeactivateWorkflow,
    DeleteWorkflow,
    DuplicateWorkflow,
    RemoveConnection,
    RemoveNode,
    RenameWorkflow,
    UpdateNode,
    UpdateWorkflowMetadata,
    WorkflowCommand,
)
from src.domain.workflow.entities.workflow import Workflow
from src.domain.workflow.events.domain_events import DomainEvent
from src.domain.workflow.events.event_queue import DEFAULT_MAX_PENDING_EVENTS
from src.domain.workflow.exceptions import (
    ValidationError,
    WorkflowActiveError,
    WorkflowBusyError,
    WorkflowException,
    WorkflowNotFoundError,
)
from src.domain.workflow.value_objects.identifier import Identifier
from src.ports.secondary.event_publisher import IEventPublisher
from src.ports.secondary.metrics import IMetrics
from src.ports.secondary.workflow_lock import IWorkflowLock
from src.ports.secondary.workflow_repository import IWorkflowRepository
from src.shared.logger import bind_context, get_logger, unbind_context

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a command: the resulting workflow state and the events it emitted."""

    workflow: Workflow
    events: list[DomainEvent] = field(default_factory=list)


class WorkflowCommandService:
    """
    Application service that runs workflow commands against the aggregate.

    Each command type maps explicitly to one handler. Commands on an existing
    workflow follow a single cycle under the per-workflow lock:

    1. Load the aggregate (WorkflowNotFoundError if absent).
    2. Apply the mutation; a domain error aborts before anything is saved.
    3. Save, then drain the pending events and hand them to the publisher.

    Whether graph edits are allowed on an active workflow is a policy of this
    service (`require_deactivation_for_edits`), not of the aggregate.
    """

    def __init__(
        self,
        workflow_repository: IWorkflowRepository,
        event_publisher: IEventPublisher,
        workflow_lock: IWorkflowLock,
        metrics: IMetrics | None = None,
        require_deactivation_for_edits: bool = False,
        max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS,
    ):
        self._workflow_repository = workflow_repository
        self._event_publisher = event_publisher
        self._workflow_lock = workflow_lock
        self._metrics = metrics
        self._require_deactivation_for_edits = require_deactivation_for_edits
        self._max_pending_events = max_pending_events

        self._handlers: dict[type, Callable[..., Awaitable[CommandResult]]] = {
            CreateWorkflow: self._create,
            RenameWorkflow: self._rename,
            UpdateWorkflowMetadata: self._update_metadata,
            AddNode: self._add_node,
            RemoveNode: self._remove_node,
            UpdateNode: self._update_node,
            AddConnection: self._add_connection,
            RemoveConnection: self._remove_connection,
            ActivateWorkflow: self._activate,
            DeactivateWorkflow: self._deactivate,
            DuplicateWorkflow: self._duplicate,
            DeleteWorkflow: self._delete,
        }

    async def execute(self, command: WorkflowCommand) -> CommandResult:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValidationError(
                f"Unsupported command: {type(command).__name__}",
                {"command": type(command).__name__},
            )

        command_name = type(command).__name__
        workflow_id = getattr(command, "workflow_id", None)
        bind_context({"command": command_name, "workflow_id": workflow_id})
        started = time.perf_counter()
        try:
            result = await handler(command)
        except WorkflowException as e:
            self._record(command_name, "failed", started)
            logger.warning(
                "workflow_command_failed",
                error_code=e.error_code,
                message=e.message,
                context=e.context,
            )
            raise
        except Exception as e:
            self._record(command_name, "failed", started)
            logger.error("workflow_command_error", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            unbind_context("command", "workflow_id")

        self._record(command_name, "succeeded", started)
        logger.info(
            "workflow_command_succeeded",
            command=command_name,
            workflow_id=str(result.workflow.id),
            version=result.workflow.version,
            events=[event.event_type for event in result.events],
        )
        return result

    # --- Handlers ---

    async def _create(self, command: CreateWorkflow) -> CommandResult:
        workflow = Workflow.create(
            command.name,
            nodes=command.nodes,
            connections=command.connections,
            description=command.description,
            settings=command.settings,
            tags=command.tags,
            max_pending_events=self._max_pending_events,
        )
        return await self._persist(workflow)

    async def _rename(self, command: RenameWorkflow) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.rename(command.name))

    async def _update_metadata(self, command: UpdateWorkflowMetadata) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.update_metadata(command.changes))

    async def _add_node(self, command: AddNode) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.add_node(command.node))

    async def _remove_node(self, command: RemoveNode) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.remove_node(command.node_id))

    async def _update_node(self, command: UpdateNode) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.update_node(command.node_id, command.changes))

    async def _add_connection(self, command: AddConnection) -> CommandResult:
        return await self._mutate(
            command,
            lambda wf: wf.add_connection(
                command.source_node_id,
                command.target_node_id,
                source_output=command.source_output,
                target_input=command.target_input,
                kind=command.kind,
            ),
        )

    async def _remove_connection(self, command: RemoveConnection) -> CommandResult:
        return await self._mutate(
            command,
            lambda wf: wf.remove_connection(
                command.source_node_id,
                command.target_node_id,
                source_output=command.source_output,
                target_input=command.target_input,
                kind=command.kind,
            ),
        )

    async def _activate(self, command: ActivateWorkflow) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.activate())

    async def _deactivate(self, command: DeactivateWorkflow) -> CommandResult:
        return await self._mutate(command, lambda wf: wf.deactivate())

    async def _duplicate(self, command: DuplicateWorkflow) -> CommandResult:
        source = await self._load(self._parse_id(command.workflow_id))
        return await self._persist(source.duplicate(command.name))

    async def _delete(self, command: DeleteWorkflow) -> CommandResult:
        workflow_id = self._parse_id(command.workflow_id)
        async with self._locked(workflow_id):
            workflow = await self._load(workflow_id)
            workflow.mark_deleted()
            await self._workflow_repository.delete(workflow_id)
            return await self._dispatch(workflow)

    # --- Internals ---

    async def _mutate(self, command: WorkflowCommand, apply: Callable[[Workflow], object]) -> CommandResult:
        workflow_id = self._parse_id(command.workflow_id)
        async with self._locked(workflow_id):
            workflow = await self._load(workflow_id)
            if (
                self._require_deactivation_for_edits
                and workflow.active
                and isinstance(command, STRUCTURAL_COMMANDS)
            ):
                raise WorkflowActiveError(workflow_id)
            apply(workflow)
            return await self._persist(workflow)

    async def _persist(self, workflow: Workflow) -> CommandResult:
        await self._workflow_repository.save(workflow)
        return await self._dispatch(workflow)

    async def _dispatch(self, workflow: Workflow) -> CommandResult:
        events = workflow.drain_events()
        if events:
            await self._event_publisher.publish(events)
            if self._metrics:
                self._metrics.record_events(events)
        return CommandResult(workflow=workflow, events=events)

    async def _load(self, workflow_id: str) -> Workflow:
        workflow = await self._workflow_repository.get_by_id(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    @staticmethod
    def _parse_id(raw: str) -> str:
        return str(Identifier.parse(raw))

    @asynccontextmanager
    async def _locked(self, workflow_id: str):
        if not await self._workflow_lock.acquire(workflow_id):
            raise WorkflowBusyError(workflow_id)
        try:
            yield
        finally:
            await self._workflow_lock.release(workflow_id)

    def _record(self, command_name: str, status: str, started: float) -> None:
        if self._metrics:
            self._metrics.record_command(command_name, status, time.perf_counter() - started)

