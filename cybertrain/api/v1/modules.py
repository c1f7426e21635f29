"""
Module catalog endpoints - authoring, validation, import/export.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, status

from cybertrain.api.deps import Catalog
from cybertrain.engines.modules.management import CatalogExport, CatalogStatistics, SystemValidation
from cybertrain.engines.modules.sequencing import ModuleDependencies
from cybertrain.kernel.errors import UnknownModuleError
from cybertrain.kernel.models.module import Activity, Difficulty, Module
from cybertrain.schemas.common import SuccessResponse
from cybertrain.schemas.modules import ImportResponse

router = APIRouter()


@router.get("", response_model=List[Module])
async def list_modules(
    catalog: Catalog,
    category: Optional[str] = None,
    difficulty: Optional[Difficulty] = None,
    is_published: Optional[bool] = None,
    tags: Optional[List[str]] = Query(default=None),
):
    """List modules by order. tags matches modules carrying any of the given tags."""
    return catalog.get_modules(
        category=category,
        difficulty=difficulty,
        is_published=is_published,
        tags=tags,
    )


@router.post("", response_model=Module, status_code=status.HTTP_201_CREATED)
async def create_module(module: Module, catalog: Catalog):
    return catalog.add_module(module)


@router.get("/statistics", response_model=CatalogStatistics)
async def get_statistics(catalog: Catalog):
    return catalog.get_statistics()


@router.get("/validate", response_model=SystemValidation)
async def validate_catalog(catalog: Catalog):
    """Run the whole-catalog consistency check (cycles, dangling references, orphans)."""
    return catalog.validate_system()


@router.get("/export", response_model=CatalogExport)
async def export_catalog(catalog: Catalog):
    return catalog.export_data()


@router.post("/import", response_model=ImportResponse)
async def import_catalog(catalog: Catalog, data: Dict[str, Any] = Body(...)):
    """Replace the catalog with a previous export. The old catalog survives a failed import."""
    if not catalog.import_data(data):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Catalog import failed; previous catalog kept",
        )
    stats = catalog.get_statistics()
    return ImportResponse(
        success=True,
        module_count=stats.total_modules,
        activity_count=stats.total_activities,
        badge_count=stats.total_badges,
    )


@router.get("/{module_id}", response_model=Module)
async def get_module(module_id: str, catalog: Catalog):
    module = catalog.get_module(module_id)
    if module is None:
        raise UnknownModuleError(module_id)
    return module


@router.put("/{module_id}", response_model=Module)
async def update_module(module_id: str, catalog: Catalog, updates: Dict[str, Any] = Body(...)):
    return catalog.update_module(module_id, updates)


@router.delete("/{module_id}", response_model=SuccessResponse)
async def delete_module(module_id: str, catalog: Catalog):
    if not catalog.remove_module(module_id):
        raise UnknownModuleError(module_id)
    return SuccessResponse(message=f"Module {module_id} removed")


@router.post("/{module_id}/activities", response_model=Activity, status_code=status.HTTP_201_CREATED)
async def add_activity(module_id: str, activity: Activity, catalog: Catalog):
    return catalog.add_activity_to_module(module_id, activity)


@router.get("/{module_id}/dependencies", response_model=ModuleDependencies)
async def get_dependencies(module_id: str, catalog: Catalog):
    return catalog.get_module_dependencies(module_id)
