"""REST API for the check catalog."""

from __future__ import annotations

from fastapi import APIRouter

from checkoutinspector.checks.engine import CheckEngine

router = APIRouter(tags=["checks"])


@router.get("/checks")
async def list_checks():
    return [
        {"id": check.id, "category": check.category.value}
        for check in CheckEngine().checks
    ]
