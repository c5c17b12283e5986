from datetime import UTC, datetime

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health():
    return {"ok": True, "time": datetime.now(UTC).isoformat()}
