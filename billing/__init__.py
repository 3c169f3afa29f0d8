"""billing/ -- Subscription lookup and billing-status mapping for LedgerGate.

Layer rule: billing/ imports only stdlib and third-party libraries.
auth/engine.py consumes billing/; billing/ never imports from auth/ or api/.
"""
