"""
Connections to external state stores (Redis).
"""
