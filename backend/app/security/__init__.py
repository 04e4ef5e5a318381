# Security package init
"""
Guidepost Backend — Security Primitives
=========================================

What:  Pure, I/O-free cryptographic helpers.

Inventory:
    - launch_params.py: HMAC signing/verification of platform launch parameters
"""
