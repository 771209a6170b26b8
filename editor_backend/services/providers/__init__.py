from .alternative import AlternativeProvider
from .base import ExecutionProvider, SpecializedProvider, SpecializedProviderMatcher
from .compiler_proxy import CompilerProxyProvider
from .judge0 import Judge0Provider
from .star_pattern import StarPatternMatcher, StarPatternProvider

__all__ = [
    "AlternativeProvider",
    "CompilerProxyProvider",
    "ExecutionProvider",
    "Judge0Provider",
    "SpecializedProvider",
    "SpecializedProviderMatcher",
    "StarPatternMatcher",
    "StarPatternProvider",
]
