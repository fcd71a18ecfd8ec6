"""Redis-backed Idempotency-Key handling for report generation.

A key moves processing -> done. While processing, repeats get 409; once done,
repeats with the same payload replay the stored response. The header is optional:
requests without it are never tracked.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Union, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.infra.redis_client import get_redis

DONE_TTL_SEC = 60 * 60 * 24
PROCESSING_TTL_SEC = 60
REPLAY_HEADER = "Idempotent-Replayed"

logger = logging.getLogger("mealreports.idempotency")

Claim = tuple[str, str, bytes]


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fingerprint(method: str, path: str, body: bytes) -> str:
    return hashlib.sha256(b"|".join([method.encode(), path.encode(), body or b""])).hexdigest()


def _record_key(scope_id: str, route_key: str, idem_key: str) -> str:
    return f"mealreports:idemp:{scope_id}:{route_key}:{idem_key}"


def _record(state: str, req_hash: str, status: Optional[int] = None, body: Optional[dict] = None) -> str:
    return json.dumps({
        "state": state,
        "status": status,
        "body": body,
        "request_hash": req_hash,
        "updated_at": _iso_now(),
    })


def _still_processing() -> HTTPException:
    return HTTPException(status_code=409, detail="Request with this Idempotency-Key is still processing. Retry shortly.")


async def idempotency_precheck(
    request: Request, *, scope_id: str, route_key: str
) -> Union[Claim, JSONResponse, None]:
    """None: no Idempotency-Key, proceed untracked.
    JSONResponse: a completed response to replay as-is.
    (redis_key, request_hash, body): key claimed, proceed and store the result."""
    idem_key = request.headers.get("Idempotency-Key")
    if not idem_key:
        return None

    body = await request.body()
    req_hash = _fingerprint(request.method, request.url.path, body)
    rkey = _record_key(scope_id, route_key, idem_key)
    r = await get_redis()

    raw = await r.get(rkey)
    if raw:
        stored = json.loads(raw)
        if stored.get("request_hash") != req_hash:
            raise HTTPException(status_code=409, detail="Idempotency-Key reused with different request payload")
        if stored.get("state") != "done":
            raise _still_processing()
        return JSONResponse(
            content=stored["body"],
            status_code=int(stored["status"]),
            headers={REPLAY_HEADER: "true"},
        )

    # SET NX: only one request owns the key
    if not await r.set(rkey, _record("processing", req_hash), ex=PROCESSING_TTL_SEC, nx=True):
        raise _still_processing()
    return (rkey, req_hash, body)


async def idempotency_store_result(redis_key: str, req_hash: str, *, status: int, body: dict):
    r = await get_redis()
    await r.set(redis_key, _record("done", req_hash, int(status), body), ex=DONE_TTL_SEC)


async def idempotency_clear_key(redis_key: str):
    """Release the processing claim so the client can retry after a failure.

    Runs on error paths: a Redis failure here is logged, never raised.
    """
    try:
        r = await get_redis()
        await r.delete(redis_key)
    except RedisError as e:
        logger.warning(f"Could not release idempotency key {redis_key}: {e}")
