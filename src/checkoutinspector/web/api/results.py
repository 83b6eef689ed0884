"""REST API for stored scan results."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from checkoutinspector.storage.repos import SqliteResultStore

router = APIRouter(tags=["results"])


@router.get("/results")
async def list_results(request: Request, limit: int = 50, offset: int = 0):
    store = SqliteResultStore(request.app.state.db)
    return await store.list_all(limit=limit, offset=offset)


@router.get("/results/{tab_id}")
async def get_result(tab_id: int, request: Request):
    store = SqliteResultStore(request.app.state.db)
    result = await store.get(tab_id)
    if result is None:
        return JSONResponse(
            status_code=404,
            content={"detail": "No result for tab"},
        )
    return result.to_dict()
