from typing import Iterable, List, Optional

from editor_backend.models import ExecutionRequest, ProviderDescriptor
from editor_backend.services.providers.base import FALLBACK, HOSTED, SPECIALIZED, ExecutionProvider, SpecializedProvider

# Capabilities that can take a request first; fallbacks only follow a primary
ROUTABLE = (HOSTED, SPECIALIZED)


class ProviderRegistry:
    """
    Ordered set of execution providers, queried by capability.
    Registration order is the preference order.
    """

    def __init__(self, providers: Iterable[ExecutionProvider] = ()):
        self.providers: List[ExecutionProvider] = list(providers)

    def register(self, provider: ExecutionProvider) -> None:
        self.providers.append(provider)

    def with_capability(self, capability: str) -> List[ExecutionProvider]:
        return [p for p in self.providers if p.has_capability(capability)]

    def _first(self, capability: str, language: str) -> Optional[ExecutionProvider]:
        for provider in self.with_capability(capability):
            if provider.supports(language):
                return provider
        return None

    def specialized_for(self, request: ExecutionRequest) -> Optional[SpecializedProvider]:
        for provider in self.providers:
            if isinstance(provider, SpecializedProvider) and provider.matches(request):
                return provider
        return None

    def primary_for(self, language: str) -> Optional[ExecutionProvider]:
        return self._first(HOSTED, language)

    def fallback_for(self, language: str) -> Optional[ExecutionProvider]:
        return self._first(FALLBACK, language)

    def select(self, request: ExecutionRequest) -> Optional[ExecutionProvider]:
        return self.specialized_for(request) or self.primary_for(request.language)

    def routable(self) -> List[ExecutionProvider]:
        return [p for p in self.providers if any(p.has_capability(c) for c in ROUTABLE)]

    def is_supported(self, language: str) -> bool:
        return any(p.supports(language) for p in self.routable())

    def routable_languages(self) -> List[str]:
        return sorted({lang for p in self.routable() for lang in p.languages})

    def supported_languages(self, capability: Optional[str] = HOSTED) -> List[str]:
        providers = self.providers if capability is None else self.with_capability(capability)
        return sorted({lang for p in providers for lang in p.languages})

    def describe(self) -> List[ProviderDescriptor]:
        return [p.describe() for p in self.providers]
