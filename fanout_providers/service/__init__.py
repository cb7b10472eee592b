"""HTTP service, CLI, and development server for the fan-out orchestrator."""
