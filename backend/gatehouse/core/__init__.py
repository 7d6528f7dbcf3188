# gatehouse/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Site switch seeding and credential checks at startup
- db: Database configuration and connection management
- errors: Domain exceptions and the JSON error envelope
- pubsub: WebSocket chat event broadcasting
- security: Tier credentials, normalization and client IP resolution
"""
