"""
Authentication module for the referral tracker.

This module provides authentication and authorization functionality including:
- Email/password login issuing JWT bearer tokens
- Admin-only user management
- Capability checks for every route
"""
