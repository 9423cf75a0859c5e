"""
Command-line interface for evmscope.
"""
