"""Hierarchy node API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from orgtree.api.dependencies import CurrentCaller, TenantCaller
from orgtree.modules.nodes.models import Node, NodeKind
from orgtree.modules.nodes.schemas import (
    HierarchyStats,
    NodeCreate,
    NodeListResponse,
    NodeMove,
    NodeRename,
    NodeResponse,
    RepairResponse,
)
from orgtree.modules.nodes.services import HierarchySvc


router = APIRouter(prefix="/nodes", tags=["nodes"])


def _listing(nodes: list[Node]) -> NodeListResponse:
    return NodeListResponse(
        items=[NodeResponse.model_validate(node) for node in nodes],
        total=len(nodes),
    )


@router.post(
    "",
    response_model=NodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a node",
    description="Omit parent_id and the tenant header to found a new tenant.",
)
async def create_node(data: NodeCreate, caller: CurrentCaller, service: HierarchySvc) -> Node:
    return await service.create(data, caller.tenant_id, caller.actor)


@router.get("", response_model=NodeListResponse, summary="List nodes")
async def list_nodes(
    caller: TenantCaller,
    service: HierarchySvc,
    kind: NodeKind | None = None,
    parent_id: UUID | None = None,
    level: int | None = Query(None, ge=0),
    search: str | None = Query(None, min_length=1),
) -> NodeListResponse:
    nodes = await service.list_nodes(
        caller.tenant_id,
        kind=kind,
        parent_id=parent_id,
        level=level,
        search=search,
    )
    return _listing(nodes)


@router.get("/hierarchy", response_model=NodeListResponse, summary="Whole tree in path order")
async def get_hierarchy(
    caller: TenantCaller,
    service: HierarchySvc,
    max_depth: int | None = Query(None, ge=0),
) -> NodeListResponse:
    return _listing(await service.get_hierarchy(caller.tenant_id, max_depth))


@router.get("/stats", response_model=HierarchyStats, summary="Hierarchy statistics")
async def get_stats(caller: TenantCaller, service: HierarchySvc) -> HierarchyStats:
    return await service.get_stats(caller.tenant_id)


@router.get(
    "/by-path",
    response_model=NodeListResponse,
    summary="Node at a path and everything beneath it",
)
async def find_by_path(
    caller: TenantCaller,
    service: HierarchySvc,
    prefix: str = Query(..., min_length=1),
) -> NodeListResponse:
    return _listing(await service.find_by_path_prefix(prefix, caller.tenant_id))


@router.get("/{node_id}", response_model=NodeResponse, summary="Get a node")
async def get_node(node_id: UUID, caller: TenantCaller, service: HierarchySvc) -> Node:
    return await service.get_node(node_id, caller.tenant_id)


@router.get("/{node_id}/children", response_model=NodeListResponse, summary="Direct children")
async def list_children(
    node_id: UUID, caller: TenantCaller, service: HierarchySvc
) -> NodeListResponse:
    return _listing(await service.list_children(node_id, caller.tenant_id))


@router.get(
    "/{node_id}/ancestors",
    response_model=NodeListResponse,
    summary="Ancestors, root first",
)
async def list_ancestors(
    node_id: UUID, caller: TenantCaller, service: HierarchySvc
) -> NodeListResponse:
    return _listing(await service.list_ancestors(node_id, caller.tenant_id))


@router.patch("/{node_id}", response_model=NodeResponse, summary="Rename a node")
async def rename_node(
    node_id: UUID, data: NodeRename, caller: TenantCaller, service: HierarchySvc
) -> Node:
    return await service.rename(node_id, data.name, caller.tenant_id, caller.actor)


@router.post("/{node_id}/move", response_model=NodeResponse, summary="Move a node")
async def move_node(
    node_id: UUID, data: NodeMove, caller: TenantCaller, service: HierarchySvc
) -> Node:
    return await service.move(node_id, data.new_parent_id, caller.tenant_id, caller.actor)


@router.post(
    "/{node_id}/repair",
    response_model=RepairResponse,
    summary="Re-derive a subtree",
)
async def repair_node(
    node_id: UUID, caller: TenantCaller, service: HierarchySvc
) -> RepairResponse:
    repaired = await service.repair_subtree(node_id, caller.tenant_id, caller.actor)
    return RepairResponse(
        repaired=[NodeResponse.model_validate(node) for node in repaired],
        total=len(repaired),
    )


@router.delete(
    "/{node_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Retire a node",
)
async def delete_node(node_id: UUID, caller: TenantCaller, service: HierarchySvc) -> Response:
    await service.delete(node_id, caller.tenant_id, caller.actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
