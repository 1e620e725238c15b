"""
Utility helpers:
    - text.py: Voice-name locale derivation, log previews, SSML escaping
    - timeit.py: Timing context manager
"""
