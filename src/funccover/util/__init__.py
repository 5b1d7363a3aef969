"""
Utility modules for funccover.

- I/O helpers (io/)
"""
