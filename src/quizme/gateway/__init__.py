"""AI question generation and explanations."""

from .backends import (
    DEFAULT_MODEL,
    CompletionBackend,
    GatewayError,
    OpenAIBackend,
    ProxyBackend,
)
from .gateway import (
    EXPLANATION_FAILURE,
    MAX_GENERATE_COUNT,
    MIN_GENERATE_COUNT,
    AIGateway,
    clamp_count,
    parse_drafts,
)
from .drafts import DraftBatch, RequestTracker

__all__ = [
    "DEFAULT_MODEL",
    "CompletionBackend",
    "GatewayError",
    "OpenAIBackend",
    "ProxyBackend",
    "EXPLANATION_FAILURE",
    "MAX_GENERATE_COUNT",
    "MIN_GENERATE_COUNT",
    "AIGateway",
    "clamp_count",
    "parse_drafts",
    "DraftBatch",
    "RequestTracker",
]
