"""Health check endpoints."""

from fastapi import APIRouter, Depends

from costing.core.cache import CostingCache, get_costing_cache

router = APIRouter()


@router.get("/health")
def health(cache: CostingCache = Depends(get_costing_cache)) -> dict[str, str]:
    """Liveness plus whether costing snapshots are being cached."""

    return {"status": "ok", "cache": "enabled" if cache.client is not None else "disabled"}
