"""Dependencies, helpers, and routers used by ``service.app``."""
