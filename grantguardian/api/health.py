from fastapi import APIRouter
from grantguardian.core.config import settings

router = APIRouter()

@router.get("/health")
async def health():
    return {"status": "ok", "backend": settings.BACKEND}
