# ABOUTME: Resources package initialization for integrationcli
# ABOUTME: One module per API resource family

"""
integrationcli Resources Package

Application Integration API:
    - authconfigs.py: Auth configurations
    - certificates.py: SSL certificates
    - provision.py: Client provisioning

Integration Connectors API:
    - connections.py: Connections (create, import, export, ...)
    - iam.py: Connection IAM policies
    - operations.py: Long-running operations
    - zones.py: Managed zones
"""
