"""Referring directory: practices, locations, providers and provider notes."""
