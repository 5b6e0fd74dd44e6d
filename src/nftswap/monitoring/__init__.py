"""
Prometheus metrics.
"""
