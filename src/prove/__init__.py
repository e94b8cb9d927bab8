"""
Prove - trunk-based quality gate with TDD phase enforcement

Prove resolves a delivery mode for the current commit, runs an ordered set of
critical checks followed by a bounded-concurrency set of independent checks,
and aggregates the verdict into a JSON report.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
