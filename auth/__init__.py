"""auth/ -- Credential verification and login token issuance for LedgerGate.

Layer rule: auth/ imports only stdlib, third-party libraries and billing/.
It does NOT import from api/ or core/.
api/ imports from auth/, not the other way around.
"""
