from typing import Any, Dict, Optional

class WorkflowException(Exception):
    def __init__(
        self,
        message: str,
        error_code: str = "WORKFLOW_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WorkflowException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            context=details
        )

class InvalidIdentifierError(ValidationError):
    def __init__(self, raw: str, expected: str = "uuid4"):
        self.raw = raw
        super().__init__(
            message=f"Invalid identifier '{raw}': expected {expected}",
            details={"raw": raw, "expected": expected}
        )
        self.error_code = "INVALID_IDENTIFIER"


class NotFoundError(WorkflowException):
    pass

class WorkflowNotFoundError(NotFoundError):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(
            message=f"Workflow '{workflow_id}' not found",
            error_code="WORKFLOW_NOT_FOUND",
            context={"workflow_id": workflow_id}
        )

class NodeNotFoundError(NotFoundError):
    def __init__(self, workflow_id: str, node_id: str):
        self.node_id = node_id
        super().__init__(
            message=f"Node '{node_id}' not found in workflow '{workflow_id}'",
            error_code="NODE_NOT_FOUND",
            context={"workflow_id": workflow_id, "node_id": node_id}
        )

class ConnectionNotFoundError(NotFoundError):
    def __init__(self, workflow_id: str, source_node_id: str, target_node_id: str):
        super().__init__(
            message=f"Connection '{source_node_id}' -> '{target_node_id}' not found",
            error_code="CONNECTION_NOT_FOUND",
            context={
                "workflow_id": workflow_id,
                "source_node_id": source_node_id,
                "target_node_id": target_node_id,
            }
        )


class ConflictError(WorkflowException):
    pass

class DuplicateNodeError(ConflictError):
    def __init__(self, workflow_id: str, node_id: str):
        self.node_id = node_id
        super().__init__(
            message=f"Duplicate node ID detected: {node_id}",
            error_code="DUPLICATE_NODE_ID",
            context={"workflow_id": workflow_id, "node_id": node_id}
        )

class DuplicateConnectionError(ConflictError):
    def __init__(self, workflow_id: str, connection: str):
        super().__init__(
            message=f"Connection already exists: {connection}",
            error_code="DUPLICATE_CONNECTION",
            context={"workflow_id": workflow_id, "connection": connection}
        )

class CyclicConnectionError(ConflictError):
    def __init__(self, workflow_id: str, connection: str):
        super().__init__(
            message=f"Adding connection {connection} would create a cycle",
            error_code="CYCLIC_CONNECTION",
            context={"workflow_id": workflow_id, "connection": connection}
        )

class WorkflowActiveError(ConflictError):
    def __init__(self, workflow_id: str):
        super().__init__(
            message=f"Workflow '{workflow_id}' must be deactivated before editing",
            error_code="WORKFLOW_ACTIVE",
            context={"workflow_id": workflow_id}
        )

class WorkflowBusyError(ConflictError):
    def __init__(self, workflow_id: str):
        super().__init__(
            message=f"Workflow '{workflow_id}' is being modified by another command",
            error_code="WORKFLOW_BUSY",
            context={"workflow_id": workflow_id}
        )


class PersistenceError(WorkflowException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            context=details
        )

class EventQueueOverflowError(WorkflowException):
    def __init__(self, workflow_id: str, max_size: int):
        super().__init__(
            message=f"Pending event queue for workflow '{workflow_id}' exceeds {max_size} events",
            error_code="EVENT_QUEUE_OVERFLOW",
            context={"workflow_id": workflow_id, "max_size": max_size}
        )
