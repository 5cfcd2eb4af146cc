"""Core domain package for autorelay.

Core contains rules, matching, contacts, and scheduling logic without any
Telegram or storage-specific code, keeping the business logic portable.
"""
