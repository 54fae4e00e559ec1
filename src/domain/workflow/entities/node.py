from dataclasses import dataclass, field, replace
from typing import Any

from src.domain.workflow.exceptions import ValidationError
from src.domain.workflow.value_objects.identifier import ReadableIdentifier
from src.domain.workflow.value_objects.node_position import NodePosition

UPDATABLE_FIELDS = frozenset({"name", "position", "parameters", "disabled", "notes"})


@dataclass(frozen=True)
class Node:
    """
    Represents a single step in a workflow graph.

    Attributes:
        id (ReadableIdentifier): Unique identifier for the node within the workflow.
        type (str): Node type key (e.g., "httpRequest").
        name (str): Display name; defaults to the type.
        position (NodePosition): Canvas position.
        parameters (dict): Configuration parameters for the node type.
        disabled (bool): Disabled nodes stay in the graph but are skipped at runtime.
        notes (str): Free-form annotation.
    """

    id: ReadableIdentifier
    type: str
    name: str = ""
    position: NodePosition = field(default_factory=NodePosition.origin)
    parameters: dict[str, Any] = field(default_factory=dict)
    disabled: bool = False
    notes: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type.strip():
            raise ValidationError("Node type cannot be empty", {"node_id": str(self.id)})
        for attr in ("name", "notes"):
            if not isinstance(getattr(self, attr), str):
                raise ValidationError(f"Node {attr} must be a string", {"node_id": str(self.id)})
        if not self.name.strip():
            object.__setattr__(self, "name", self.type)
        if not isinstance(self.parameters, dict):
            raise ValidationError("Node parameters must be an object", {"node_id": str(self.id)})

    @classmethod
    def from_descriptor(cls, descriptor: dict[str, Any]) -> "Node":
        """Build a node from a JSON-compatible descriptor."""
        if "id" not in descriptor or "type" not in descriptor:
            raise ValidationError("Node descriptor requires 'id' and 'type'", {"descriptor": descriptor})
        return cls(
            id=ReadableIdentifier.parse(descriptor["id"]),
            type=descriptor["type"],
            name=descriptor.get("name") or "",
            position=NodePosition.from_dict(descriptor.get("position")),
            parameters=dict(descriptor.get("parameters") or {}),
            disabled=bool(descriptor.get("disabled", False)),
            notes=descriptor.get("notes") or "",
        )

    def merge(self, changes: dict[str, Any]) -> "Node":
        """
        Returns a copy with the partial changes applied.

        Parameters are shallow-merged; every other field is replaced.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update node fields: {sorted(unknown)}",
                {"node_id": str(self.id), "fields": sorted(unknown)},
            )

        updates: dict[str, Any] = {}
        if "name" in changes:
            updates["name"] = changes["name"] or ""
        if "position" in changes:
            position = changes["position"]
            updates["position"] = position if isinstance(position, NodePosition) else NodePosition.from_dict(position)
        if "parameters" in changes:
            if not isinstance(changes["parameters"], dict):
                raise ValidationError("Node parameters must be an object", {"node_id": str(self.id)})
            updates["parameters"] = {**self.parameters, **changes["parameters"]}
        if "disabled" in changes:
            updates["disabled"] = bool(changes["disabled"])
        if "notes" in changes:
            updates["notes"] = changes["notes"] or ""

        return replace(self, **updates)

    def with_id(self, node_id: ReadableIdentifier) -> "Node":
        return replace(self, id=node_id, parameters=dict(self.parameters))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "type": self.type,
            "name": self.name,
            "position": self.position.to_dict(),
            "parameters": dict(self.parameters),
            "disabled": self.disabled,
            "notes": self.notes,
        }
