"""auth/ -- Authentication and authorization for the back office.

Credential store, token issuer, permission model, session state and the
AuthService that ties them together.

Layer rule: auth/ imports from core/ (config, database) and third-party
libraries only. It does NOT import from operations/ or console/.
console/ and main.py import from auth/, not the other way around.
"""
