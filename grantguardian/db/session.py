import logging
from typing import Optional

from grantguardian.core.config import settings
from grantguardian.db.backend import Backend

logger = logging.getLogger(__name__)

_backend: Optional[Backend] = None


def build_backend() -> Backend:
    if settings.BACKEND == "supabase":
        from grantguardian.db.supabase_backend import SupabaseBackend
        logger.info(f"Backend configured: supabase ({settings.SUPABASE_URL})")
        return SupabaseBackend(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    if settings.BACKEND == "memory":
        from grantguardian.db.memory import InMemoryBackend
        logger.warning("Backend configured: in-memory. Data is lost on restart.")
        return InMemoryBackend()
    raise ValueError(f"Unknown BACKEND '{settings.BACKEND}'")


def get_backend() -> Backend:
    """FastAPI dependency returning the process-wide backend."""
    global _backend
    if _backend is None:
        _backend = build_backend()
    return _backend
