import copy
from collections import defaultdict, deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from src.domain.workflow.entities.node import Node
from src.domain.workflow.events.domain_events import (
    ConnectionAdded,
    ConnectionRemoved,
    DomainEvent,
    NodeAdded,
    NodeRemoved,
    NodeUpdated,
    WorkflowActivated,
    WorkflowCreated,
    WorkflowDeactivated,
    WorkflowDeleted,
    WorkflowDuplicated,
    WorkflowMetadataUpdated,
    WorkflowRenamed,
)
from src.domain.workflow.events.event_queue import DEFAULT_MAX_PENDING_EVENTS, DomainEventQueue
from src.domain.workflow.exceptions import (
    ConnectionNotFoundError,
    CyclicConnectionError,
    DuplicateConnectionError,
    DuplicateNodeError,
    NodeNotFoundError,
    ValidationError,
)
from src.domain.workflow.value_objects.connection import Connection, ConnectionKind
from src.domain.workflow.value_objects.identifier import Identifier, ReadableIdentifier

METADATA_FIELDS = frozenset({"description", "settings", "tags"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Workflow name cannot be empty")
    return name.strip()


def _clean_description(description: str | None) -> str:
    if description is None:
        return ""
    if not isinstance(description, str):
        raise ValidationError("Workflow description must be a string")
    return description


def _clean_settings(settings: dict[str, Any] | None) -> dict[str, Any]:
    if settings is None:
        return {}
    if not isinstance(settings, dict):
        raise ValidationError("Workflow settings must be an object")
    return dict(settings)


def _clean_tags(tags: Iterable[str] | None) -> list[str]:
    """Strips tags and drops repeats, keeping first-seen order."""
    if tags is None:
        return []
    if isinstance(tags, str):
        raise ValidationError("Workflow tags must be a list of strings")
    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError("Workflow tags must be non-empty strings", {"tag": str(tag)})
        if tag.strip() not in cleaned:
            cleaned.append(tag.strip())
    return cleaned


@dataclass
class Workflow:
    """
    Aggregate Root for a workflow graph (nodes + connections).

    Every accepted mutation records the domain events it caused on an internal
    queue, advances `updated_at` and bumps `version`. Nothing is published from
    here: the application layer drains the queue after each command.

    Invariants:
        - Node IDs are unique within the workflow.
        - Every connection endpoint references a node currently in `nodes`.
        - Connections are unique and never form a directed cycle.
        - A failed operation leaves state and pending events untouched.

    Constructing the dataclass directly restores a snapshot and records no
    events; use `Workflow.create()` for new workflows.
    """

    name: str
    id: Identifier = field(default_factory=Identifier.generate)
    active: bool = False
    nodes: dict[str, Node] = field(default_factory=dict)
    connections: list[Connection] = field(default_factory=list)
    description: str = ""
    settings: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None
    version: int = 1
    max_pending_events: int = field(default=DEFAULT_MAX_PENDING_EVENTS, repr=False, compare=False)
    _pending_events: DomainEventQueue = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.name = _clean_name(self.name)
        self.description = _clean_description(self.description)
        self.settings = _clean_settings(self.settings)
        self.tags = _clean_tags(self.tags)
        if self.updated_at is None:
            self.updated_at = self.created_at
        self._pending_events = DomainEventQueue(str(self.id), self.max_pending_events)
        self._validate_invariants()

    # --- Factories ---

    @classmethod
    def create(
        cls,
        name: str,
        nodes: Iterable[Node | dict] = (),
        connections: Iterable[Connection | dict] = (),
        description: str = "",
        settings: dict[str, Any] | None = None,
        tags: Iterable[str] = (),
        max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS,
    ) -> "Workflow":
        """
        Creates a new workflow, optionally seeded with nodes and connections.

        The seed graph is validated with the same rules as the individual
        operations; only a single `WorkflowCreated` event is recorded.
        """
        workflow = cls(
            name=name,
            description=description,
            settings=settings,
            tags=tags,
            max_pending_events=max_pending_events,
        )
        for node in nodes:
            node = _coerce_node(node)
            workflow._check_node_absent(str(node.id))
            workflow.nodes[str(node.id)] = node
        for connection in connections:
            connection = _coerce_connection(connection)
            workflow._check_connection_allowed(connection)
            workflow.connections.append(connection)

        workflow._pending_events.extend(
            [WorkflowCreated(workflow_id=str(workflow.id), name=workflow.name, occurred_at=workflow.created_at)]
        )
        return workflow

    @classmethod
    def from_dict(cls, data: dict[str, Any], max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS) -> "Workflow":
        nodes = [Node.from_descriptor(node) for node in data.get("nodes", [])]
        return cls(
            id=Identifier.parse(data["id"]),
            name=data["name"],
            active=bool(data.get("active", False)),
            nodes={str(node.id): node for node in nodes},
            connections=[Connection.from_dict(conn) for conn in data.get("connections", [])],
            description=data.get("description") or "",
            settings=data.get("settings") or {},
            tags=data.get("tags") or [],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            version=int(data.get("version", 1)),
            max_pending_events=max_pending_events,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "active": self.active,
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "connections": [conn.to_dict() for conn in self.connections],
            "description": self.description,
            "settings": copy.deepcopy(self.settings),
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }

    # --- Events ---

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return self._pending_events.peek()

    def drain_events(self) -> list[DomainEvent]:
        """Returns all pending events in the order they occurred and clears the queue."""
        return self._pending_events.drain()

    # --- Queries ---

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: str) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(str(self.id), node_id) from None

    def connections_of(self, node_id: str) -> list[Connection]:
        return [conn for conn in self.connections if conn.references(node_id)]

    def topological_order(self) -> list[str]:
        """Kahn's algorithm over node IDs; ties are broken by node ID for determinism."""
        adjacency: dict[str, set[str]] = defaultdict(set)
        in_degree = {node_id: 0 for node_id in self.nodes}
        for conn in self.connections:
            if conn.target_node_id not in adjacency[conn.source_node_id]:
                adjacency[conn.source_node_id].add(conn.target_node_id)
                in_degree[conn.target_node_id] += 1

        queue = deque(sorted(node_id for node_id, degree in in_degree.items() if degree == 0))
        result = []
        while queue:
            current = queue.popleft()
            result.append(current)
            for neighbor in sorted(adjacency.get(current, set())):
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)
        return result

    # --- Mutations ---

    def rename(self, new_name: str) -> None:
        new_name = _clean_name(new_name)
        old_name = self.name
        now = self._next_timestamp()

        def apply() -> None:
            self.name = new_name

        self._commit(
            [WorkflowRenamed(workflow_id=str(self.id), old_name=old_name, new_name=new_name, occurred_at=now)],
            apply,
            now,
        )

    def update_metadata(self, changes: dict[str, Any]) -> None:
        """
        Replaces any of `description`, `settings` and `tags`.

        Settings are replaced as a whole, not merged.
        """
        unknown = set(changes) - METADATA_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update workflow fields: {sorted(unknown)}",
                {"fields": sorted(unknown)},
            )
        if not changes:
            raise ValidationError("No workflow fields to update", {"workflow_id": str(self.id)})
        cleaners = {"description": _clean_description, "settings": _clean_settings, "tags": _clean_tags}
        updates = {key: cleaners[key](value) for key, value in changes.items()}
        now = self._next_timestamp()

        def apply() -> None:
            for key, value in updates.items():
                setattr(self, key, value)

        self._commit(
            [
                WorkflowMetadataUpdated(
                    workflow_id=str(self.id),
                    changed_fields=tuple(sorted(updates)),
                    occurred_at=now,
                )
            ],
            apply,
            now,
        )

    def add_node(self, node: Node | dict) -> Node:
        node = _coerce_node(node)
        node_id = str(node.id)
        self._check_node_absent(node_id)
        now = self._next_timestamp()

        def apply() -> None:
            self.nodes[node_id] = node

        self._commit(
            [NodeAdded(workflow_id=str(self.id), node_id=node_id, node_type=node.type, occurred_at=now)],
            apply,
            now,
        )
        return node

    def remove_node(self, node_id: str) -> Node:
        """Removes a node and cascades to every connection that references it."""
        node = self.get_node(node_id)
        incident = self.connections_of(node_id)
        now = self._next_timestamp()

        events: list[DomainEvent] = [NodeRemoved(workflow_id=str(self.id), node_id=node_id, occurred_at=now)]
        events.extend(
            ConnectionRemoved(workflow_id=str(self.id), connection=conn, occurred_at=now) for conn in incident
        )

        def apply() -> None:
            del self.nodes[node_id]
            self.connections = [conn for conn in self.connections if not conn.references(node_id)]

        self._commit(events, apply, now)
        return node

    def update_node(self, node_id: str, changes: dict[str, Any]) -> Node:
        current = self.get_node(node_id)
        if not changes:
            raise ValidationError("No node fields to update", {"node_id": node_id})
        updated = current.merge(changes)
        now = self._next_timestamp()

        def apply() -> None:
            self.nodes[node_id] = updated

        self._commit(
            [
                NodeUpdated(
                    workflow_id=str(self.id),
                    node_id=node_id,
                    changed_fields=tuple(sorted(changes)),
                    occurred_at=now,
                )
            ],
            apply,
            now,
        )
        return updated

    def add_connection(
        self,
        source_node_id: str,
        target_node_id: str,
        source_output: str = "main",
        target_input: str = "main",
        kind: ConnectionKind | str = ConnectionKind.MAIN,
    ) -> Connection:
        connection = Connection(
            source_node_id=source_node_id,
            target_node_id=target_node_id,
            source_output=source_output,
            target_input=target_input,
            kind=kind,
        )
        self._check_connection_allowed(connection)
        now = self._next_timestamp()

        def apply() -> None:
            self.connections.append(connection)

        self._commit(
            [ConnectionAdded(workflow_id=str(self.id), connection=connection, occurred_at=now)],
            apply,
            now,
        )
        return connection

    def remove_connection(
        self,
        source_node_id: str,
        target_node_id: str,
        source_output: str | None = None,
        target_input: str | None = None,
        kind: ConnectionKind | str | None = None,
    ) -> list[Connection]:
        """Removes every connection between the two nodes matching the given ports (unset ports match any)."""
        if kind is not None:
            kind = ConnectionKind.parse(kind)
        matched = [
            conn
            for conn in self.connections
            if conn.matches(source_node_id, target_node_id, source_output, target_input, kind)
        ]
        if not matched:
            raise ConnectionNotFoundError(str(self.id), source_node_id, target_node_id)
        now = self._next_timestamp()

        def apply() -> None:
            self.connections = [conn for conn in self.connections if conn not in matched]

        self._commit(
            [ConnectionRemoved(workflow_id=str(self.id), connection=conn, occurred_at=now) for conn in matched],
            apply,
            now,
        )
        return matched

    def activate(self) -> None:
        if self.active:
            return
        if not self.nodes:
            raise ValidationError("Cannot activate workflow without nodes", {"workflow_id": str(self.id)})
        now = self._next_timestamp()

        def apply() -> None:
            self.active = True

        self._commit([WorkflowActivated(workflow_id=str(self.id), occurred_at=now)], apply, now)

    def deactivate(self) -> None:
        if not self.active:
            return
        now = self._next_timestamp()

        def apply() -> None:
            self.active = False

        self._commit([WorkflowDeactivated(workflow_id=str(self.id), occurred_at=now)], apply, now)

    def duplicate(self, new_name: str) -> "Workflow":
        """
        Builds a new inactive workflow with the same graph shape.

        Node IDs are remapped to fresh values so the copy never shares node
        identity with the source. The source workflow is not modified.
        """
        new_name = _clean_name(new_name)
        id_map = {node_id: str(ReadableIdentifier.generate()) for node_id in self.nodes}
        nodes = [node.with_id(ReadableIdentifier(id_map[node_id])) for node_id, node in self.nodes.items()]
        connections = [
            Connection(
                source_node_id=id_map[conn.source_node_id],
                target_node_id=id_map[conn.target_node_id],
                source_output=conn.source_output,
                target_input=conn.target_input,
                kind=conn.kind,
            )
            for conn in self.connections
        ]

        clone = Workflow.create(
            new_name,
            nodes,
            connections,
            description=self.description,
            settings=copy.deepcopy(self.settings),
            tags=self.tags,
            max_pending_events=self.max_pending_events,
        )
        clone._pending_events.extend(
            [
                WorkflowDuplicated(
                    workflow_id=str(clone.id),
                    source_workflow_id=str(self.id),
                    occurred_at=clone.created_at,
                )
            ]
        )
        return clone

    def mark_deleted(self) -> None:
        now = self._next_timestamp()
        self._commit([WorkflowDeleted(workflow_id=str(self.id), occurred_at=now)], lambda: None, now)

    # --- Internals ---

    def _next_timestamp(self) -> datetime:
        now = utc_now()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        return now

    def _commit(self, events: list[DomainEvent], apply: Callable[[], None], now: datetime) -> None:
        self._pending_events.ensure_capacity(len(events))
        apply()
        self.updated_at = now
        self.version += 1
        self._pending_events.extend(events)

    def _check_node_absent(self, node_id: str) -> None:
        if node_id in self.nodes:
            raise DuplicateNodeError(str(self.id), node_id)

    def _check_connection_allowed(self, connection: Connection) -> None:
        for node_id in (connection.source_node_id, connection.target_node_id):
            if node_id not in self.nodes:
                raise NodeNotFoundError(str(self.id), node_id)
        if connection in self.connections:
            raise DuplicateConnectionError(str(self.id), str(connection))
        if self._reaches(connection.target_node_id, connection.source_node_id):
            raise CyclicConnectionError(str(self.id), str(connection))

    def _reaches(self, start: str, goal: str) -> bool:
        adjacency: dict[str, set[str]] = defaultdict(set)
        for conn in self.connections:
            adjacency[conn.source_node_id].add(conn.target_node_id)

        stack = [start]
        seen = set()
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(adjacency.get(current, ()))
        return False

    def _validate_invariants(self) -> None:
        for node_id, node in self.nodes.items():
            if str(node.id) != node_id:
                raise ValidationError("Node map key does not match node ID", {"node_id": node_id})
        seen: set[Connection] = set()
        for conn in self.connections:
            for node_id in (conn.source_node_id, conn.target_node_id):
                if node_id not in self.nodes:
                    raise NodeNotFoundError(str(self.id), node_id)
            if conn in seen:
                raise DuplicateConnectionError(str(self.id), str(conn))
            seen.add(conn)


def _coerce_node(node: Node | dict) -> Node:
    if isinstance(node, Node):
        return node
    if isinstance(node, dict):
        return Node.from_descriptor(node)
    raise ValidationError("Node must be a Node or a descriptor object")


def _coerce_connection(connection: Connection | dict) -> Connection:
    if isinstance(connection, Connection):
        return connection
    if isinstance(connection, dict):
        try:
            return Connection.from_dict(connection)
        except (KeyError, ValueError) as e:
            raise ValidationError("Invalid connection descriptor", {"error": str(e)}) from e
    raise ValidationError("Connection must be a Connection or a descriptor object")
