from abc import ABC, abstractmethod
from typing import FrozenSet

from editor_backend.models import ExecutionRequest, ExecutionResult, ProviderDescriptor

HOSTED = "hosted"
SPECIALIZED = "specialized"
FALLBACK = "fallback"


class ExecutionProvider(ABC):
    """
    Abstract base class for execution providers (e.g., Judge0, a compiler proxy).
    The dispatcher only sees this interface and the capability tags.
    """

    name: str = "provider"
    capabilities: FrozenSet[str] = frozenset()
    languages: FrozenSet[str] = frozenset()

    def supports(self, language: str) -> bool:
        return language.lower() in self.languages

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def describe(self) -> ProviderDescriptor:
        return ProviderDescriptor(
            name=self.name,
            supported_languages=set(self.languages),
            capabilities=set(self.capabilities),
        )

    @abstractmethod
    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run the request and return a result.

        Args:
            request: The validated execution request.

        Returns:
            ExecutionResult: Output and status reported by the provider. The
            dispatcher overwrites ``duration_ms`` and caps ``stdout``.

        Raises:
            ProviderTimeout: If the provider did not finish in time.
            ProviderError: If the provider could not be reached or answered garbage.
        """
        pass  # pragma: no cover


class SpecializedProviderMatcher(ABC):
    """Decides whether a specialized provider should take a request."""

    @abstractmethod
    def matches(self, request: ExecutionRequest) -> bool:
        pass  # pragma: no cover


class SpecializedProvider(ExecutionProvider):
    """A provider that only takes requests its matcher recognises."""

    capabilities = frozenset({SPECIALIZED})

    def __init__(self, matcher: SpecializedProviderMatcher):
        self.matcher = matcher

    def matches(self, request: ExecutionRequest) -> bool:
        return self.supports(request.language) and self.matcher.matches(request)
