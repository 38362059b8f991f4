# ABOUTME: Utilities package initialization for integrationcli
# ABOUTME: Contains shared utilities for HTTP, auth, KMS, logging, and validation

"""
integrationcli Utilities Package

Shared utilities:
    - client.py: HTTP client with error mapping and secret masking
    - auth.py: Access token resolution with google-auth
    - kms.py: Cloud KMS symmetric encrypt/decrypt
    - ratelimit.py: Per-API request pacing
    - logging.py: Structured logging with invocation IDs, response printing
    - validation.py: Resource-name patterns and flag checks
    - files.py: Export folder and file helpers
"""
