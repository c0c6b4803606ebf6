"""auth/ -- Authentication and authorization package for Rolegate.

Token Service (tokens.py), RBAC repository (rbac.py), credential store
(store.py), and the authorization gate (gate.py, dependencies.py).

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/ or items/.
api/ imports from auth/, not the other way around.
"""
