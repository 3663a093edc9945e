"""
Services layer - dispatch business logic lives here.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Persistence goes through app.stores, never a client directly
- Per-incident and per-team failures are logged and contained
"""
