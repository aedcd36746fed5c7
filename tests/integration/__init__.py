"""
HTTP-level tests for the cleanup and identity clients.

A mocked ``requests.Session`` stands in for the auth API and demonstrates:
- Tiered fallback testing
- Transient vs. persistent failure handling
- Verifying which calls were (not) made
"""
