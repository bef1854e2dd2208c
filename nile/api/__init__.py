from nile.api.rate_limit import MemoryRateLimitStore, RateLimiter, RedisRateLimitStore
from nile.api.rest import create_rest_router
from nile.api.rpc import RPC, create_rpc
from nile.api.ws import create_ws_router

__all__ = [
    "MemoryRateLimitStore",
    "RPC",
    "RateLimiter",
    "RedisRateLimitStore",
    "create_rest_router",
    "create_rpc",
    "create_ws_router",
]
