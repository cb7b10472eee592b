"""Models parts package; import from ``fanout_providers.base.models``."""
