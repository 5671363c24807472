"""FastAPI router configuration."""
from __future__ import annotations

import logging
from typing import Sequence

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .config import Settings, configure_logging, get_settings
from .database import get_session
from .errors import (
    ExportFileError,
    ExportRecordNotFoundError,
    ItemNotFoundError,
    MissingColumnsError,
    NoValidItemsError,
    OperationError,
    SpreadsheetFormatError,
    StoreUnavailableError,
)
from .exporter import ExportResult
from .filtering import ALL, ItemQuery
from .importer import ImportSession
from .spreadsheets import XLSX_CONTENT_TYPE, write_import_template
from .taxonomy import CATEGORY_SUBCATEGORY_MAP, parse_category
from .workspace import InventoryWorkspace

logger = logging.getLogger(__name__)

router = APIRouter()


def provide_settings() -> Settings:
    """Dependency returning the active :class:`Settings` instance."""

    return get_settings()


def provide_workspace(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(provide_settings),
) -> InventoryWorkspace:
    return InventoryWorkspace(session, settings=settings)


def _xlsx_response(result: ExportResult) -> Response:
    return Response(
        content=result.content,
        media_type=XLSX_CONTENT_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename={result.filename}",
            "X-Export-Record-Id": result.record.id,
        },
    )


@router.get("/health", response_model=schemas.HealthStatus, tags=["system"])
async def health_check(settings: Settings = Depends(provide_settings)) -> schemas.HealthStatus:
    return schemas.HealthStatus(environment=settings.environment)


@router.get("/taxonomy", response_model=schemas.TaxonomyOut, tags=["items"])
async def get_taxonomy() -> schemas.TaxonomyOut:
    return schemas.TaxonomyOut(categories=CATEGORY_SUBCATEGORY_MAP)


@router.get("/items", response_model=list[schemas.StockItemOut], tags=["items"])
async def list_items(
    q: str = "",
    category: str = ALL,
    subcategory: str = ALL,
    sort: schemas.SortKey = "name",
    direction: schemas.SortDirection = "asc",
    workspace: InventoryWorkspace = Depends(provide_workspace),
) -> Sequence[schemas.StockItemOut]:
    if category != ALL and parse_category(category) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown category: {category}"
        )
    await workspace.load()
    query = ItemQuery(
        name_query=q,
        category=category,
        subcategory=subcategory,
        sort_key=sort,
        sort_direction=direction,
    )
    return workspace.view(query)


@router.get("/items/{item_id}", response_model=schemas.StockItemOut, tags=["items"])
async def get_item(
    item_id: str, workspace: InventoryWorkspace = Depends(provide_workspace)
) -> schemas.StockItemOut:
    return await workspace.get_item(item_id)


@router.post(
    "/items",
    response_model=schemas.StockItemOut,
    status_code=status.HTTP_201_CREATED,
    tags=["items"],
)
async def create_item(
    payload: schemas.StockItemCreate,
    workspace: InventoryWorkspace = Depends(provide_workspace),
) -> schemas.StockItemOut:
    return await workspace.add_item(payload)


@router.put("/items/{item_id}", response_model=schemas.StockItemOut, tags=["items"])
async def update_item(
    item_id: str,
    payload: schemas.StockItemUpdate,
    workspace: InventoryWorkspace = Depends(provide_workspace),
) -> schemas.StockItemOut:
    try:
        return await workspace.update_item(item_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["items"])
async def delete_item(
    item_id: str, workspace: InventoryWorkspace = Depends(provide_workspace)
) -> None:
    await workspace.delete_item(item_id)


@router.get("/imports/template", tags=["imports"])
async def download_import_template() -> Response:
    return Response(
        content=write_import_template(),
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": "attachment; filename=inventory_import_template.xlsx"},
    )


@router.post("/imports/preview", response_model=schemas.ImportPreviewOut, tags=["imports"])
async def preview_import(file: UploadFile = File(...)) -> schemas.ImportPreviewOut:
    session = ImportSession()
    report = session.load(await file.read(), file.filename)
    return schemas.ImportPreviewOut(file_name=session.file_name, **report.to_dict())


@router.post("/imports", response_model=schemas.ImportCommitOut, tags=["imports"])
async def commit_import(
    file: UploadFile = File(...),
    workspace: InventoryWorkspace = Depends(provide_workspace),
) -> schemas.ImportCommitOut:
    session = ImportSession()
    report = session.load(await file.read(), file.filename)
    imported = await session.commit(workspace)
    return schemas.ImportCommitOut(
        file_name=file.filename,
        imported=imported,
        skipped=report.invalid_count,
        items_total=len(workspace.items),
    )


@router.get("/exports", response_model=list[schemas.ExportRecordSummary], tags=["exports"])
async def list_exports(
    search: str = "", workspace: InventoryWorkspace = Depends(provide_workspace)
) -> Sequence[schemas.ExportRecordSummary]:
    await workspace.load()
    return [
        schemas.ExportRecordSummary(
            id=record.id, timestamp=record.timestamp, item_count=record.item_count
        )
        for record in workspace.history(search)
    ]


@router.post("/exports", tags=["exports"])
async def create_export(
    payload: schemas.ItemQueryIn | None = None,
    workspace: InventoryWorkspace = Depends(provide_workspace),
) -> Response:
    payload = payload or schemas.ItemQueryIn()
    await workspace.load()
    query = ItemQuery(
        name_query=payload.name_query,
        category=getattr(payload.category, "value", payload.category),
        subcategory=payload.subcategory,
        sort_key=payload.sort_key,
        sort_direction=payload.sort_direction,
    )
    result = await workspace.export(query)
    return _xlsx_response(result)


@router.get("/exports/{record_id}", response_model=schemas.ExportRecordOut, tags=["exports"])
async def get_export(
    record_id: str, workspace: InventoryWorkspace = Depends(provide_workspace)
) -> schemas.ExportRecordOut:
    return await workspace.find_export(record_id)


@router.get("/exports/{record_id}/download", tags=["exports"])
async def download_export(
    record_id: str, workspace: InventoryWorkspace = Depends(provide_workspace)
) -> Response:
    return _xlsx_response(await workspace.redownload(record_id))


def _error(message: str, status_code: int, **extra: object) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StoreUnavailableError)
    async def _store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        return _error(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE, retry=True)

    @app.exception_handler(OperationError)
    async def _operation_failed(request: Request, exc: OperationError) -> JSONResponse:
        return _error(str(exc), status.HTTP_502_BAD_GATEWAY, operation=exc.operation)

    @app.exception_handler(ItemNotFoundError)
    @app.exception_handler(ExportRecordNotFoundError)
    async def _not_found(request: Request, exc: LookupError) -> JSONResponse:
        return _error(str(exc), status.HTTP_404_NOT_FOUND)

    @app.exception_handler(MissingColumnsError)
    async def _missing_columns(request: Request, exc: MissingColumnsError) -> JSONResponse:
        return _error(str(exc), status.HTTP_400_BAD_REQUEST, missing_columns=exc.missing)

    @app.exception_handler(SpreadsheetFormatError)
    async def _bad_spreadsheet(request: Request, exc: SpreadsheetFormatError) -> JSONResponse:
        return _error(
            f"There was an error processing the file: {exc}", status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(NoValidItemsError)
    async def _nothing_to_import(request: Request, exc: NoValidItemsError) -> JSONResponse:
        return _error(str(exc), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(ExportFileError)
    async def _export_file_failed(request: Request, exc: ExportFileError) -> JSONResponse:
        return _error(
            str(exc),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            export_record_id=exc.record.id,
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    app = FastAPI(title=settings.app_name)
    app.dependency_overrides[provide_settings] = lambda: settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Export-Record-Id"],
    )
    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
