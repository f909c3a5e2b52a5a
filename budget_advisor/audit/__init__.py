"""Audit logging package."""

from budget_advisor.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
