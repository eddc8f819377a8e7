"""Core shared logic for indicator computation and signal generation.

This package contains pure business logic with no network or database
access. Price history is supplied by the caller on every run, indicator
values are computed through TA-Lib and cached in memory, and strategies
turn those values into weighted trading signals.
"""
