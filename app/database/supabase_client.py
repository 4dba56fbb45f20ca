import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from app.config import settings
from app.core.exceptions import ServerError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class SupabaseClient:
    _client: Optional[AsyncClient] = None
    _lock: Optional[asyncio.Lock] = None

    @classmethod
    async def get_client(cls) -> AsyncClient:
        if cls._client is None:
            if cls._lock is None:
                cls._lock = asyncio.Lock()
            async with cls._lock:
                if cls._client is None:
                    cls._client = await acreate_client(
                        settings.supabase_url,
                        settings.supabase_key,
                        options=AsyncClientOptions(
                            postgrest_client_timeout=settings.store_timeout_seconds,
                        ),
                    )
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._lock = None


async def get_supabase() -> AsyncClient:
    return await SupabaseClient.get_client()


async def run_query(query: Any, action: str) -> Any:
    """Execute a PostgREST query with a bounded timeout.

    Timeouts become ServiceUnavailableError (retryable); any other store
    failure becomes a generic ServerError. The cause is only logged.
    """
    try:
        return await asyncio.wait_for(query.execute(), timeout=settings.store_timeout_seconds)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.error(f"Store timeout while trying to {action}")
        raise ServiceUnavailableError()
    except APIError as e:
        logger.error(f"Store error while trying to {action}: {e}")
        raise ServerError()
    except httpx.HTTPError as e:
        logger.error(f"Store transport error while trying to {action}: {e}")
        raise ServerError()


def first_row(result: Any) -> Optional[Dict[str, Any]]:
    if result is None or not result.data:
        return None
    return result.data[0]
