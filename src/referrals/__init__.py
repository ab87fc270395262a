"""Referral intake, workflow, documents and export."""
