"""Self-healing deploy, verify and remediate orchestrator."""

__version__ = "0.1.0"
