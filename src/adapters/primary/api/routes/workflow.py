from fastapi import APIRouter, Depends, Query, status
from src.adapters.primary.api.dto import (
    CommandResponse,
    ConnectionDTO,
    ErrorResponse,
    NodeDTO,
    NodeUpdateRequest,
    WorkflowCreateRequest,
    WorkflowDuplicateRequest,
    WorkflowMetadataRequest,
    WorkflowRenameRequest,
    WorkflowResponse,
)
from src.adapters.primary.api.dependencies import (
    get_workflow_command_service,
    get_workflow_query_service,
)
from src.application.workflow.commands import (
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
)
from src.application.workflow.queries import GetWorkflowById, ListWorkflows
from src.application.workflow.use_cases.workflow_commands import WorkflowCommandService
from src.application.workflow.use_cases.workflow_queries import WorkflowQueryService
from src.domain.workflow.value_objects.connection import ConnectionKind

# API versioning for forward compatibility
API_VERSION = "v1"
router = APIRouter(prefix=f"/api/{API_VERSION}/workflows", tags=["Workflow"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=CommandResponse,
    responses={422: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED,
    summary="Create a workflow",
    description="Create a workflow, optionally seeded with nodes and connections.",
)
async def create_workflow(
    request: WorkflowCreateRequest,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(
        CreateWorkflow(
            name=request.name,
            nodes=tuple(node.model_dump() for node in request.nodes),
            connections=tuple(conn.model_dump(mode="json") for conn in request.connections),
            description=request.description,
            settings=request.settings,
            tags=tuple(request.tags),
        )
    )
    return CommandResponse.from_result(result)


@router.get(
    "",
    response_model=list[WorkflowResponse],
    summary="List workflows",
)
async def list_workflows(
    active: bool | None = Query(None),
    service: WorkflowQueryService = Depends(get_workflow_query_service),
) -> list[WorkflowResponse]:
    workflows = await service.execute(ListWorkflows(active=active))
    return [WorkflowResponse.from_domain(workflow) for workflow in workflows]


@router.get(
    "/{workflow_id}",
    response_model=WorkflowResponse,
    responses=NOT_FOUND,
    summary="Get a workflow",
)
async def get_workflow(
    workflow_id: str,
    service: WorkflowQueryService = Depends(get_workflow_query_service),
) -> WorkflowResponse:
    workflow = await service.execute(GetWorkflowById(workflow_id=workflow_id))
    return WorkflowResponse.from_domain(workflow)


@router.patch(
    "/{workflow_id}",
    response_model=CommandResponse,
    responses=NOT_FOUND,
    summary="Rename a workflow",
)
async def rename_workflow(
    workflow_id: str,
    request: WorkflowRenameRequest,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(RenameWorkflow(workflow_id=workflow_id, name=request.name))
    return CommandResponse.from_result(result)


@router.patch(
    "/{workflow_id}/metadata",
    response_model=CommandResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Update workflow metadata",
    description="Replace any of description, settings and tags; omitted fields are left as they are.",
)
async def update_workflow_metadata(
    workflow_id: str,
    request: WorkflowMetadataRequest,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(UpdateWorkflowMetadata(workflow_id=workflow_id, changes=request.changes()))
    return CommandResponse.from_result(result)


@router.delete(
    "/{workflow_id}",
    response_model=CommandResponse,
    responses=NOT_FOUND,
    summary="Delete a workflow",
)
async def delete_workflow(
    workflow_id: str,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(DeleteWorkflow(workflow_id=workflow_id))
    return CommandResponse.from_result(result)


@router.post(
    "/{workflow_id}/nodes",
    response_model=CommandResponse,
    responses=CONFLICT,
    status_code=status.HTTP_201_CREATED,
    summary="Add a node",
)
async def add_node(
    workflow_id: str,
    request: NodeDTO,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(AddNode(workflow_id=workflow_id, node=request.model_dump()))
    return CommandResponse.from_result(result)


@router.patch(
    "/{workflow_id}/nodes/{node_id}",
    response_model=CommandResponse,
    responses=CONFLICT,
    summary="Update a node",
    description="Partially update a node; parameters are merged key by key.",
)
async def update_node(
    workflow_id: str,
    node_id: str,
    request: NodeUpdateRequest,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(
        UpdateNode(workflow_id=workflow_id, node_id=node_id, changes=request.changes())
    )
    return CommandResponse.from_result(result)


@router.delete(
    "/{workflow_id}/nodes/{node_id}",
    response_model=CommandResponse,
    responses=CONFLICT,
    summary="Remove a node",
    description="Remove a node together with every connection that references it.",
)
async def remove_node(
    workflow_id: str,
    node_id: str,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(RemoveNode(workflow_id=workflow_id, node_id=node_id))
    return CommandResponse.from_result(result)


@router.post(
    "/{workflow_id}/connections",
    response_model=CommandResponse,
    responses=CONFLICT,
    status_code=status.HTTP_201_CREATED,
    summary="Add a connection",
)
async def add_connection(
    workflow_id: str,
    request: ConnectionDTO,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(
        AddConnection(
            workflow_id=workflow_id,
            source_node_id=request.source_node_id,
            target_node_id=request.target_node_id,
            source_output=request.source_output,
            target_input=request.target_input,
            kind=request.kind.value,
        )
    )
    return CommandResponse.from_result(result)


@router.delete(
    "/{workflow_id}/connections",
    response_model=CommandResponse,
    responses=CONFLICT,
    summary="Remove connections",
    description="Remove connections between two nodes; omitted ports and kind match any.",
)
async def remove_connection(
    workflow_id: str,
    source_node_id: str = Query(..., alias="sourceNodeId"),
    target_node_id: str = Query(..., alias="targetNodeId"),
    source_output: str | None = Query(None, alias="sourceOutput"),
    target_input: str | None = Query(None, alias="targetInput"),
    kind: ConnectionKind | None = Query(None),
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(
        RemoveConnection(
            workflow_id=workflow_id,
            source_node_id=source_node_id,
            target_node_id=target_node_id,
            source_output=source_output,
            target_input=target_input,
            kind=kind.value if kind else None,
        )
    )
    return CommandResponse.from_result(result)


@router.post(
    "/{workflow_id}/activate",
    response_model=CommandResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Activate a workflow",
)
async def activate_workflow(
    workflow_id: str,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(ActivateWorkflow(workflow_id=workflow_id))
    return CommandResponse.from_result(result)


@router.post(
    "/{workflow_id}/deactivate",
    response_model=CommandResponse,
    responses=NOT_FOUND,
    summary="Deactivate a workflow",
)
async def deactivate_workflow(
    workflow_id: str,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(DeactivateWorkflow(workflow_id=workflow_id))
    return CommandResponse.from_result(result)


@router.post(
    "/{workflow_id}/duplicate",
    response_model=CommandResponse,
    responses=NOT_FOUND,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a workflow",
    description="Copy the graph into a new inactive workflow with fresh node IDs.",
)
async def duplicate_workflow(
    workflow_id: str,
    request: WorkflowDuplicateRequest,
    service: WorkflowCommandService = Depends(get_workflow_command_service),
) -> CommandResponse:
    result = await service.execute(DuplicateWorkflow(workflow_id=workflow_id, name=request.name))
    return CommandResponse.from_result(result)
