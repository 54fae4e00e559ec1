from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.domain.workflow.exceptions import ValidationError


class ConnectionKind(str, Enum):
    """
    Kind of edge between two nodes.

    Kinds:
        MAIN: Regular data flow between steps.
        AI: Sub-node wiring (model, memory, tool) into an AI node.
    """

    MAIN = "main"
    AI = "ai"

    @classmethod
    def parse(cls, kind: "ConnectionKind | str") -> "ConnectionKind":
        if isinstance(kind, cls):
            return kind
        try:
            return cls(kind)
        except ValueError:
            raise ValidationError(f"Unknown connection kind '{kind}'", {"kind": str(kind)}) from None


@dataclass(frozen=True)
class Connection:
    """
    Directed edge from a node's output port to another node's input port.

    Attributes:
        source_node_id (str): Node the data flows out of.
        target_node_id (str): Node the data flows into.
        source_output (str): Output port name on the source node.
        target_input (str): Input port name on the target node.
        kind (ConnectionKind): Edge kind.
    """

    source_node_id: str
    target_node_id: str
    source_output: str = "main"
    target_input: str = "main"
    kind: ConnectionKind = ConnectionKind.MAIN

    def __post_init__(self) -> None:
        if not self.source_node_id or not self.target_node_id:
            raise ValidationError("Source and target node IDs are required for a connection")
        if self.source_node_id == self.target_node_id:
            raise ValidationError(
                "Cannot connect a node to itself",
                {"node_id": self.source_node_id},
            )
        if not self.source_output or not self.target_input:
            raise ValidationError("Connection ports must be non-empty")
        object.__setattr__(self, "kind", ConnectionKind.parse(self.kind))

    def references(self, node_id: str) -> bool:
        return self.source_node_id == node_id or self.target_node_id == node_id

    def matches(
        self,
        source_node_id: str,
        target_node_id: str,
        source_output: str | None = None,
        target_input: str | None = None,
        kind: ConnectionKind | str | None = None,
    ) -> bool:
        """Endpoint match where unspecified ports and kind act as wildcards."""
        if self.source_node_id != source_node_id or self.target_node_id != target_node_id:
            return False
        if source_output is not None and self.source_output != source_output:
            return False
        if target_input is not None and self.target_input != target_input:
            return False
        if kind is not None and self.kind != ConnectionKind.parse(kind):
            return False
        return True

    def __str__(self) -> str:
        return f"{self.source_node_id}[{self.source_output}] -> {self.target_node_id}[{self.target_input}]"

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_node_id": self.source_node_id,
            "target_node_id": self.target_node_id,
            "source_output": self.source_output,
            "target_input": self.target_input,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Connection":
        return cls(
            source_node_id=data["source_node_id"],
            target_node_id=data["target_node_id"],
            source_output=data.get("source_output", "main"),
            target_input=data.get("target_input", "main"),
            kind=ConnectionKind.parse(data.get("kind", "main")),
        )
