"""
Application Layer

Coordinates domain objects and infrastructure ports to fulfil player use cases.

Structure:
- services/: Session registry, status projection/refresh, and the orchestrator
- interfaces/: Port interfaces for infrastructure adapters
"""
