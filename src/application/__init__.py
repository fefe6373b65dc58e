"""
Application layer - Application Business Rules.

This layer contains the credential use cases:
- Signing and opening credential envelopes
- Resolving subjects and their display fields across tables
- The verification pipeline and its access log
"""
