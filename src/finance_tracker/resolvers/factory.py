from finance_tracker.core.configuration import AppConfig

from .base import CategoryResolver
from .exact import ExactNameResolver
from .fuzzy import FuzzyNameResolver


def build_resolver(config: AppConfig) -> CategoryResolver:
    if config.category_match_mode == "fuzzy":
        return FuzzyNameResolver(threshold=config.category_match_threshold)
    return ExactNameResolver()
