"""items/ -- Item resource persistence for Rolegate.

Layer rule: items/ imports only core/ + third-party libraries.
It does NOT import from api/ or auth/; the gate is applied by api/ routes.
"""
