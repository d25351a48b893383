"""
Convergence tracking for chassis and host power state.
"""
