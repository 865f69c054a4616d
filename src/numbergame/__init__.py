"""
Number Game: concept synthesis and Bayesian ranking over a small integer domain.

This package provides a grammar of compositional number concepts, search
procedures that find concepts consistent with positive examples, and a
size-principle posterior for ranking them and generalizing to new numbers.
"""

__version__ = "0.1.0"
