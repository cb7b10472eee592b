"""Interface parts; import from ``fanout_providers.base.interfaces``."""
