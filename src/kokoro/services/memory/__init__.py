"""Memory enrichment and archival services."""

from kokoro.services.memory.archiver import ConversationArchiver
from kokoro.services.memory.context_gateway import ContextEnrichmentGateway

__all__ = [
    "ConversationArchiver",
    "ContextEnrichmentGateway",
]
