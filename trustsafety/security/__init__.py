"""Audit trail of enforcement actions."""
