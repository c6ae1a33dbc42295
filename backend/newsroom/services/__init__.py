"""Workflow services: orchestration, sub-workflows, audit, notifications and side effects."""
