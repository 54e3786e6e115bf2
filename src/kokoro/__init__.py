"""
Kokoro - Crisis-Aware Companion Backend

This package provides the backend services for the Kokoro companion,
an AI-assisted emotional support chat for expecting and new mothers.

IMPORTANT: This is a safety-critical system. Crisis content is
deterministic and always delivered ahead of any generated text.
"""

__version__ = "0.1.0"
__author__ = "Kokoro Engineering Team"
