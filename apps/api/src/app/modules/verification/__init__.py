"""
Verification module

Registration email rules and the Redis-backed one-time code gate.
"""
