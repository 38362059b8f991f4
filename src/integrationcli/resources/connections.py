# ABOUTME: Connection operations for Integration Connectors
# ABOUTME: Create with validation and substitutions, get (minimal/overrides), list, patch, import, export

"""
Connections.

=============================================================================
REQUEST DOCUMENTS VS. API RESOURCES
=============================================================================

The API identifies a connector by a version resource name:

    "connectorVersion":
        "projects/p/locations/global/providers/gcp/connectors/pubsub/versions/1"

Connection definitions kept in source control use a friendlier, project
independent form instead:

    {
      "connectorDetails": {"name": "pubsub", "provider": "gcp", "version": 1},
      "configVariables": [{"key": "project_id", "stringValue": "$PROJECT_ID$"}],
      "authConfig": {"authType": "USER_PASSWORD",
                     "userPassword": {"username": "u",
                                      "passwordDetails": {"secretName": "pw"}}}
    }

create() turns such a request document into an API resource:

1. connectorDetails -> connectorVersion (custom connectors use "versionId")
2. "$PROJECT_ID$" in project_id and "$REGION$" in *_region variables are
   replaced by the target project and region
3. secretDetails {"secretName": "pw"} -> secret version
   "projects/{project}/secrets/pw/versions/1"

get(minimal=True) does the reverse for the connector (1), and with
overrides=True also for secrets (3) and Google project ids (2), so that
`connectors get --minimal --overrides` output can be created in another
project.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from integrationcli.errors import ApiError, InputValidationError, IntegrationCliError, ResponseDecodeError
from integrationcli.pagination import PaginatedCollection
from integrationcli.resources.operations import Operations
from integrationcli.utils.client import decode_json
from integrationcli.utils.files import ensure_folder
from integrationcli.utils.validation import parse_json_object

if TYPE_CHECKING:
    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient

logger = structlog.get_logger(__name__)

CUSTOM_CONNECTOR_PROVIDER = "customconnector"
PROJECT_PLACEHOLDER = "$PROJECT_ID$"
REGION_PLACEHOLDER = "$REGION$"
SERVICE_ACCOUNT_DOMAIN = ".iam.gserviceaccount.com"

# Connectors whose project_id variable points at a Google Cloud project
GOOGLE_CONNECTORS = frozenset(
    [
        "pubsub",
        "gcs",
        "bigquery",
        "cloudsql-mysql",
        "cloudsql-postgresql",
        "cloudsql-sqlserver",
        "cloudspanner",
    ]
)

# Fields of a connection that can be sent back to create
MINIMAL_FIELDS = (
    "description",
    "configVariables",
    "authConfig",
    "nodeConfig",
    "destinationConfigs",
    "suspended",
    "logConfig",
    "sslConfig",
    "eventingEnablementType",
    "eventingConfig",
)

# authType -> (section, secret field, secret details field).
# The secret field holds {"secretVersion": "..."}.
AUTH_SECRETS = {
    "USER_PASSWORD": ("userPassword", "password", "passwordDetails"),
    "OAUTH2_JWT_BEARER": ("oauth2JwtBearer", "clientKey", "clientKeyDetails"),
    "OAUTH2_CLIENT_CREDENTIALS": ("oauth2ClientCredentials", "clientSecret", "clientSecretDetails"),
}

# sslConfig sections holding "secretVersion" / "secretDetails" directly
SSL_SECRETS = (
    "privateServerCertificate",
    "clientCertificate",
    "clientPrivateKey",
    "clientPrivateKeyPass",
)


class ImportFailedError(IntegrationCliError):
    """One or more connections of an import could not be created."""

    def __init__(self, failures: list[str]) -> None:
        self.failures = failures
        super().__init__("\n".join(failures))


# =============================================================================
# NAME HELPERS
# =============================================================================


def secret_version_name(project: str, secret_name: str) -> str:
    return f"projects/{project}/secrets/{secret_name}/versions/1"


def secret_name_from_version(secret_version: str) -> str:
    """Secret name from a version name (projects/p/secrets/pw/versions/1 -> pw)."""
    parts = secret_version.split("/")
    if len(parts) < 4:
        raise ResponseDecodeError(f"unexpected secret version name: {secret_version}")
    return parts[3]


def connector_version_name(project: str, details: dict[str, Any]) -> str:
    """Build connectorVersion from connectorDetails."""
    version = details["versionId"] if details.get("versionId") is not None else details["version"]
    return (
        f"projects/{project}/locations/global/providers/{details['provider']}"
        f"/connectors/{details['name']}/versions/{version}"
    )


def connector_details(connector_version: str) -> dict[str, Any]:
    """Split connectorVersion back into connectorDetails."""
    parts = connector_version.split("/")
    if len(parts) < 10:
        raise ResponseDecodeError(f"unexpected connectorVersion: {connector_version}")
    provider, name, version = parts[5], parts[7], parts[9]

    details: dict[str, Any] = {"name": name, "provider": provider}
    if provider == CUSTOM_CONNECTOR_PROVIDER:
        details["versionId"] = version
    else:
        try:
            details["version"] = int(version)
        except ValueError as e:
            raise ResponseDecodeError(f"unexpected connector version: {version}") from e
    return details


def service_account_email(name: str, service_account_project: str, project: str) -> str:
    """Expand a service account name to its email in the given (or target) project."""
    if not name:
        return ""
    if SERVICE_ACCOUNT_DOMAIN in name:
        name = name.split("@")[0]
    return f"{name}@{service_account_project or project}{SERVICE_ACCOUNT_DOMAIN}"


# =============================================================================
# REQUEST <-> RESOURCE TRANSFORMS
# =============================================================================


def validate_connector_details(request: dict[str, Any]) -> dict[str, Any]:
    """Check connectorDetails of a request document and return it."""
    details = request.get("connectorDetails")
    if not isinstance(details, dict):
        raise InputValidationError("connectorDetails must be set")
    if details.get("version") is not None and details.get("versionId") is not None:
        raise InputValidationError("Version and VersionId cannot be set")
    if not details.get("name") or not details.get("provider"):
        raise InputValidationError("connectorDetails Name and Provider must be set")
    if details["provider"] == CUSTOM_CONNECTOR_PROVIDER:
        if details.get("versionId") is None:
            raise InputValidationError("connectorDetails VersionId must be set for customconnectors")
    elif details.get("version") is None:
        raise InputValidationError("connectorDetails Version must be set")
    return details


def validate_node_count(min_count: int, max_count: int) -> None:
    """Check node count bounds; -1 means not set."""
    if min_count == -1 and max_count == -1:
        raise InputValidationError("min or max must be set")
    if min_count == 0 or max_count == 0:
        raise InputValidationError("min or max cannot be set to 0")
    if min_count != -1 and max_count != -1 and min_count > max_count:
        raise InputValidationError("min cannot be set higher than max")


def _config_variables(document: dict[str, Any]) -> list[dict[str, Any]]:
    variables = document.get("configVariables") or []
    return [v for v in variables if isinstance(v, dict)]


def build_connection_request(
    request: dict[str, Any],
    project: str,
    region: str,
    service_account: str = "",
) -> dict[str, Any]:
    """
    Turn a request document into the body sent to the connections API.

    The input is not modified.
    """
    body = copy.deepcopy(request)
    details = validate_connector_details(body)

    if service_account and not body.get("serviceAccount"):
        body["serviceAccount"] = service_account

    for variable in _config_variables(body):
        key = str(variable.get("key", ""))
        value = variable.get("stringValue")
        if key == "project_id" and value == PROJECT_PLACEHOLDER:
            variable["stringValue"] = project
        elif "_region" in key and value == REGION_PLACEHOLDER:
            variable["stringValue"] = region

    body["connectorVersion"] = connector_version_name(project, details)
    del body["connectorDetails"]

    auth_config = body.get("authConfig")
    if isinstance(auth_config, dict) and auth_config.get("authType") in AUTH_SECRETS:
        section_name, secret_field, details_field = AUTH_SECRETS[auth_config["authType"]]
        section = auth_config.get(section_name)
        if isinstance(section, dict) and isinstance(section.get(details_field), dict):
            secret_name = section.pop(details_field).get("secretName", "")
            section[secret_field] = {"secretVersion": secret_version_name(project, secret_name)}

    ssl_config = body.get("sslConfig")
    if isinstance(ssl_config, dict):
        for section_name in SSL_SECRETS:
            section = ssl_config.get(section_name)
            if isinstance(section, dict) and isinstance(section.get("secretDetails"), dict):
                secret_name = section.pop("secretDetails").get("secretName", "")
                section["secretVersion"] = secret_version_name(project, secret_name)

    return body


def minimal_connection(resource: dict[str, Any], overrides: bool = False) -> dict[str, Any]:
    """
    Reduce a connection resource to a request document.

    Args:
        resource: Connection as returned by the API
        overrides: Also turn secret versions into secretDetails and Google
            project ids into $PROJECT_ID$
    """
    version = resource.get("connectorVersion")
    if not isinstance(version, str):
        raise ResponseDecodeError("connection has no connectorVersion")

    document: dict[str, Any] = {"connectorDetails": connector_details(version)}
    for field_name in MINIMAL_FIELDS:
        if field_name in resource:
            document[field_name] = copy.deepcopy(resource[field_name])

    if not overrides:
        return document

    auth_config = document.get("authConfig")
    if isinstance(auth_config, dict) and auth_config.get("authType") in AUTH_SECRETS:
        section_name, secret_field, details_field = AUTH_SECRETS[auth_config["authType"]]
        section = auth_config.get(section_name)
        if isinstance(section, dict) and isinstance(section.get(secret_field), dict):
            secret_version = section.pop(secret_field).get("secretVersion", "")
            section[details_field] = {"secretName": secret_name_from_version(secret_version)}

    if document["connectorDetails"]["name"] in GOOGLE_CONNECTORS:
        for variable in _config_variables(document):
            if variable.get("key") == "project_id":
                variable["stringValue"] = PROJECT_PLACEHOLDER

    ssl_config = document.get("sslConfig")
    if isinstance(ssl_config, dict):
        for section_name in SSL_SECRETS:
            section = ssl_config.get(section_name)
            if isinstance(section, dict) and section.get("secretVersion"):
                secret_version = section.pop("secretVersion")
                section["secretDetails"] = {"secretName": secret_name_from_version(secret_version)}

    return document


# =============================================================================
# CONNECTIONS
# =============================================================================


class Connections:
    """Operations on the connections collection."""

    def __init__(
        self,
        client: IntegrationClient,
        settings: ClientSettings | None = None,
        operations: Operations | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or client.settings
        self._operations = operations
        self.url = self._settings.connections_url
        self.collection = PaginatedCollection(
            client,
            url=self.url,
            items_key="connections",
            kind="connection",
        )

    @property
    def operations(self) -> Operations:
        if self._operations is None:
            self._operations = Operations(self._client, self._settings)
        return self._operations

    def create(
        self,
        name: str,
        content: bytes | str | dict[str, Any],
        service_account: str = "",
        service_account_project: str = "",
        wait: bool = False,
    ) -> bytes:
        """
        Create a connection from a request document.

        Args:
            name: Connection id
            content: Request document (see module docstring)
            service_account: Service account name or email the connection runs as
            service_account_project: Project of the service account (defaults
                to the target project)
            wait: Poll the returned operation until it finishes

        Returns:
            The create response (a long-running operation).
        """
        request = parse_json_object(content, "connection file")
        body = build_connection_request(
            request,
            project=self._settings.project,
            region=self._settings.region,
            service_account=service_account_email(
                service_account, service_account_project, self._settings.project
            ),
        )
        response = self._client.request("POST", self.url, params={"connectionId": name}, json_data=body)

        if wait and not self._settings.dry_run:
            operation_name = decode_json(response).get("name")
            if not isinstance(operation_name, str) or not operation_name:
                raise ResponseDecodeError("create response has no operation name")
            self.operations.wait(operation_name)
        return response

    def delete(self, name: str) -> bytes:
        return self._client.request("DELETE", f"{self.url}/{name}")

    def get(
        self,
        name: str,
        view: str = "",
        minimal: bool = False,
        overrides: bool = False,
    ) -> bytes:
        """
        Get a connection.

        Args:
            name: Connection id
            view: BASIC or FULL (server default when empty)
            minimal: Return a request document instead of the resource
            overrides: With minimal, also restore secret names and placeholders
        """
        raw = self._client.request("GET", f"{self.url}/{name}", params={"view": view})
        if not minimal:
            return raw
        document = minimal_connection(decode_json(raw), overrides=overrides)
        return json.dumps(document).encode("utf-8")

    def exists(self, name: str) -> bool:
        """Whether the connection exists; always False in dry-run mode."""
        if self._settings.dry_run:
            return False
        try:
            self._client.request("GET", f"{self.url}/{name}")
        except ApiError as e:
            if e.code == 404:
                return False
            raise
        return True

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
        order_by: str = "",
    ) -> bytes:
        return self.collection.list_page(page_size, page_token, filter, order_by)

    def find(self, display_name: str) -> str:
        return self.collection.find(display_name)

    def patch(
        self,
        name: str,
        content: bytes | str | dict[str, Any],
        update_mask: list[str] | None = None,
    ) -> bytes:
        body = parse_json_object(content, "connection file")
        params = {"updateMask": ",".join(update_mask)} if update_mask else None
        return self._client.request("PATCH", f"{self.url}/{name}", params=params, json_data=body)

    def update_node_count(self, name: str, min_count: int = -1, max_count: int = -1) -> bytes:
        """
        Set the minimum and/or maximum node count of a connection.

        -1 leaves a bound unchanged. Only the bounds given are listed in the
        update mask.

        Raises:
            InputValidationError: If neither bound is set, a bound is 0, or
                min is higher than max.
        """
        validate_node_count(min_count, max_count)
        node_config: dict[str, int] = {}
        if min_count != -1:
            node_config["minNodeCount"] = min_count
        if max_count != -1:
            node_config["maxNodeCount"] = max_count
        update_mask = [f"nodeConfig.{field_name}" for field_name in node_config]
        return self.patch(name, {"nodeConfig": node_config}, update_mask)

    def export(self, folder: str | Path) -> list[Path]:
        """Export every connection page to connections_<N>.json."""
        return self.collection.export(folder)

    def _definitions(self, path: Path) -> list[tuple[str, dict[str, Any]]]:
        """
        Read connection definitions from one file.

        Exported pages ({"connections": [...]}) yield one definition per
        connection; any other object is a single request document named
        after the file.
        """
        data = parse_json_object(path.read_bytes(), str(path))
        resources = data.get("connections")
        if isinstance(resources, list):
            return [
                (str(resource.get("name", "")).rsplit("/", 1)[-1], minimal_connection(resource))
                for resource in resources
                if isinstance(resource, dict)
            ]
        return [(path.stem, data)]

    def import_folder(self, folder: str | Path, wait: bool = False) -> list[str]:
        """
        Create every connection defined under ``folder`` that does not exist yet.

        All *.json files are read, recursively. Failures are collected and
        reported together after every file has been tried.

        Returns:
            Names of the connections created.

        Raises:
            ImportFailedError: If any definition could not be created.
        """
        root = ensure_folder(folder)
        created: list[str] = []
        failures: list[str] = []

        for path in sorted(root.rglob("*.json")):
            try:
                definitions = self._definitions(path)
            except (InputValidationError, ResponseDecodeError, OSError) as e:
                failures.append(f"{path.name}: {e}")
                continue

            for name, definition in definitions:
                log = logger.bind(connection=name, file=path.name)
                try:
                    if self.exists(name):
                        log.info("Connection already exists, skipping")
                        continue
                    log.info("Creating connection")
                    self.create(name, definition, wait=wait)
                except IntegrationCliError as e:
                    log.warning("Connection import failed", error=str(e))
                    failures.append(f"{name}: {e}")
                else:
                    created.append(name)

        if failures:
            raise ImportFailedError(failures)
        return created
