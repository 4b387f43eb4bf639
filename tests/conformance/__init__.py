"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the balance engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - total == available + held for every client
2. idempotency.py - resolve/chargeback on undisputed records change nothing
3. withdrawals.py - withdrawals never take total below zero
4. determinism.py - reproducible behavior

These tests use hypothesis for property-based testing. Shared strategies
live in strategies.py.
"""
