import math
from dataclasses import dataclass

from src.domain.workflow.exceptions import ValidationError


@dataclass(frozen=True)
class NodePosition:
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0

    def __post_init__(self) -> None:
        for axis, value in (("x", self.x), ("y", self.y)):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(
                    "Node position coordinates must be finite numbers",
                    {"axis": axis, "value": repr(value)},
                )

    @classmethod
    def origin(cls) -> "NodePosition":
        return cls(0.0, 0.0)

    def move_by(self, dx: float, dy: float) -> "NodePosition":
        return NodePosition(self.x + dx, self.y + dy)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict | None) -> "NodePosition":
        if data is None:
            return cls.origin()
        if isinstance(data, (list, tuple)) and len(data) == 2:
            return cls(data[0], data[1])
        if not isinstance(data, dict):
            raise ValidationError("Node position must be an object with x and y", {"position": repr(data)})
        return cls(data.get("x", 0.0), data.get("y", 0.0))
