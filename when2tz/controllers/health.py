from fastapi import APIRouter
from typing import Dict

from when2tz.dependencies import OptionalStore

router = APIRouter()


@router.get("/health")
async def health(store: OptionalStore) -> Dict[str, str]:
    store_status = "disconnected"
    backend = "none"
    if store is not None:
        backend = store.backend
        try:
            store_status = "healthy" if await store.ping() else "unhealthy"
        except Exception:
            store_status = "unhealthy"

    return {"status": "ok", "store": store_status, "backend": backend}
