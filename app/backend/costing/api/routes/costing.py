"""Costing rows for the billing UI."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from costing.core.cache import CostingCache, get_costing_cache
from costing.core.config import get_settings
from costing.db.dependencies import get_session_factory
from costing.services.costing_records import CostingPeriod
from costing.services.costing_service import CostingService, period_cache_key
from costing.services.sql_costing_source import SqlCostingDataSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/costing", tags=["costing"])


def _costing_service(session_factory: sessionmaker[Session], cache: CostingCache) -> CostingService:
    settings = get_settings()
    return CostingService(
        SqlCostingDataSource(session_factory),
        cache,
        ttl_seconds=settings.cache_ttl_seconds,
        key_prefix=settings.cache_key_prefix,
    )


@router.get("")
async def get_costing_rows(
    month: int,
    year: int,
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
    cache: CostingCache = Depends(get_costing_cache),
) -> dict[str, object]:
    service = _costing_service(session_factory, cache)
    try:
        rows = await service.compute_costing_rows(CostingPeriod(month=month, year=year))
    except SQLAlchemyError as exc:
        logger.exception("Costing snapshot load failed for %s-%s", year, month)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Costing data is temporarily unavailable.",
        ) from exc
    return {"month": month, "year": year, "items": [service.serialize_row(row) for row in rows]}


@router.delete("/cache", status_code=204)
async def invalidate_costing_cache(
    month: int,
    year: int,
    cache: CostingCache = Depends(get_costing_cache),
) -> Response:
    period = CostingPeriod(month=month, year=year)
    await cache.delete(period_cache_key(period, get_settings().cache_key_prefix))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
