"""studio-orchestrator - session state, routing, and recovery for planner/builder/verifier pipelines."""

__version__ = "0.1.0"
