"""Provider adapters and the participant registry."""

from multiai.providers.base import Credentials, Participant, ProviderAdapter
from multiai.providers.registry import ProviderRegistry, build_default_registry

__all__ = [
    "Credentials",
    "Participant",
    "ProviderAdapter",
    "ProviderRegistry",
    "build_default_registry",
]
