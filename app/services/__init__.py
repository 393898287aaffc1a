"""
Service Organization
====================

**application/**
  Services managed by ServiceContainer, one instance per application.
  Examples: ApiaryService, HiveService, AlertService, ProductionService

Background work (the scheduler and the periodic alert check) lives in
``app.workers``; the container wiring lives in ``container_builder``.
"""
