"""State/store layer.

The store is the single owner of the current snapshot. Views, phase
screens and selection are all derived from whatever snapshot it holds.
"""
