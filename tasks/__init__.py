"""tasks/ -- Task store and the owner-scoped task service.

Layer rule: tasks/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/. The caller's identity arrives as a
plain owner id; how it was verified is the API layer's concern.
"""
