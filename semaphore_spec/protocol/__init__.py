"""Protocol - circuit synthesis, setup, key generation, proving and verification.

Submodules are imported directly (semaphore_spec.protocol.prover, ...); the
public API is re-exported from the top-level package.
"""
