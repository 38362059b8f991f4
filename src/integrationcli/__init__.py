# ABOUTME: integrationcli package initialization
# ABOUTME: Exposes version information for the Application Integration CLI

"""
integrationcli - a command-line client for Google Cloud Application Integration.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

integrationcli wraps two management REST APIs:

1. APPLICATION INTEGRATION (https://{region}-integrations.googleapis.com)
   - Auth configurations (credentials used by integration tasks)
   - Certificates (SSL certificates used by integration tasks)
   - Client provisioning (enabling the service in a region)

2. INTEGRATION CONNECTORS (https://connectors.googleapis.com)
   - Connections (configured instances of a connector)
   - Connection IAM policies
   - Long-running operations
   - Managed zones (private DNS peering for connections)

Every command follows the same shape:

    build URL -> (optional) JSON body -> HTTP call -> (optional) pagination
              -> (optional) write pages to disk

=============================================================================
PACKAGE LAYOUT
=============================================================================

    config.py          Settings (project, region, token, flags) from env/CLI
    errors.py          Exception hierarchy shared by every command
    pagination.py      List / find / export over paginated collections
    cli.py             click command tree (the `integrationcli` executable)
    resources/         One module per API resource family
    utils/             HTTP client, auth, KMS, logging, rate limiting

=============================================================================
QUICK START
=============================================================================

    $ export INTEGRATIONCLI_PROJECT=my-project
    $ export INTEGRATIONCLI_REGION=us-central1
    $ integrationcli authconfigs list
    $ integrationcli connectors export --folder ./connections

Or from Python:

    >>> from integrationcli.config import load_settings
    >>> from integrationcli.resources.authconfigs import AuthConfigs
    >>> from integrationcli.utils.client import IntegrationClient
    >>> settings = load_settings(project="my-project", region="us-central1")
    >>> with IntegrationClient(settings) as client:
    ...     AuthConfigs(client, settings).find("my-credential")
    '2a5b6c...'
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
