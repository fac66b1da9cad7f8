"""
Provider base package.

Exports the provider-agnostic contracts, DTOs, error taxonomy and the adapter
factory used by the vendor adapters and the service layer.

Layout:
- Interfaces: the ``ProviderAdapter`` capability set and ``RequestDescriptor``
- DTOs: request settings, prompts, schemas and analysis payload models
- Streaming: SSE decoding, key scanning, orchestration and cancellation
- Factory: creation of a fresh adapter per call by canonical provider name
"""

from .errors import ErrorCode, ProviderError
from .factory import LLMProvider, UnknownProviderError, create_adapter
from .interfaces import ProviderAdapter, RequestDescriptor
from .reasoning import ReasoningLevel
from .tokens import UsageRecord

__all__ = [
    "ErrorCode",
    "ProviderError",
    "LLMProvider",
    "UnknownProviderError",
    "create_adapter",
    "ProviderAdapter",
    "RequestDescriptor",
    "ReasoningLevel",
    "UsageRecord",
]
