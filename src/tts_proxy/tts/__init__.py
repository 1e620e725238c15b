"""
Upstream TTS layer: provider base class, factory and implementations.
"""
