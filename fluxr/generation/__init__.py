"""LLM-backed feature suggestions for a product board."""

from .features import FeatureGenerator, MockFeatureGenerator, parse_features

__all__ = ["FeatureGenerator", "MockFeatureGenerator", "parse_features"]
