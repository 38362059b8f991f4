# ABOUTME: click command tree and main entry point for integrationcli
# ABOUTME: Wires flags to settings, resource operations, and stdout output

"""integrationcli command-line interface."""

from __future__ import annotations

import functools
import sys
from typing import TYPE_CHECKING, Any

import click
import structlog
from pydantic import ValidationError

from integrationcli import __version__
from integrationcli.config import ApiEnvironment, ClientSettings, load_settings
from integrationcli.errors import IntegrationCliError
from integrationcli.resources.authconfigs import AuthConfigs
from integrationcli.resources.certificates import Certificates
from integrationcli.resources.connections import Connections
from integrationcli.resources.iam import ConnectionIam
from integrationcli.resources.operations import Operations
from integrationcli.resources.provision import provision as provision_client
from integrationcli.resources.zones import ManagedZones
from integrationcli.utils.client import IntegrationClient
from integrationcli.utils.files import read_file
from integrationcli.utils.logging import configure_logging, print_response, set_invocation_id
from integrationcli.utils.validation import (
    both_or_neither,
    exactly_one,
    mutually_exclusive,
    require,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = structlog.get_logger(__name__)


class IntegrationCliGroup(click.Group):
    """Group that turns library errors into a clean message and exit code 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except (IntegrationCliError, OSError) as e:
            logger.debug("Command failed", error_type=type(e).__name__)
            raise click.ClickException(str(e)) from e


def location_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Add -p/--proj and -r/--reg to a command."""
    f = click.option("-r", "--reg", "region", help="Region, overrides INTEGRATIONCLI_REGION")(f)
    f = click.option("-p", "--proj", "project", help="Project id, overrides INTEGRATIONCLI_PROJECT")(f)
    return f


def page_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Add list paging and filtering flags."""
    f = click.option("-f", "--filter", "filter_", default="", help="Filter results")(f)
    f = click.option("--pageToken", "page_token", default="", help="Token of the page to fetch")(f)
    f = click.option(
        "--pageSize",
        "page_size",
        type=int,
        default=-1,
        show_default=True,
        help="Maximum items per page (-1 for the server default)",
    )(f)
    return f


def id_or_name_options(f: Callable[..., Any]) -> Callable[..., Any]:
    f = click.option("-n", "--name", default="", help="Display name (looked up by listing)")(f)
    f = click.option("-i", "--id", "resource_id", default="", help="Resource id")(f)
    return f


def update_mask_option(f: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--update-mask",
        "update_mask",
        multiple=True,
        help="Field to update; repeat or comma-separate for several",
    )(f)


def split_mask(values: tuple[str, ...]) -> list[str]:
    return [field for value in values for field in value.split(",") if field]


def command_settings(ctx: click.Context, project: str | None, region: str | None) -> ClientSettings:
    settings: ClientSettings = ctx.find_object(ClientSettings)
    return settings.with_overrides(project=project, region=region)


def with_settings(f: Callable[..., Any]) -> Callable[..., Any]:
    """Resolve per-command settings from -p/-r and pass them as ``settings``."""

    @location_options
    @click.pass_context
    @functools.wraps(f)
    def wrapper(ctx: click.Context, project: str | None, region: str | None, **kwargs: Any) -> Any:
        return f(command_settings(ctx, project, region), **kwargs)

    return wrapper


# =============================================================================
# ROOT
# =============================================================================


@click.group(cls=IntegrationCliGroup)
@click.option("-t", "--token", default=None, help="Google OAuth access token")
@click.option(
    "-a",
    "--account",
    "service_account",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a service account JSON key file",
)
@click.option(
    "--api",
    type=click.Choice([e.value for e in ApiEnvironment]),
    default=None,
    help="API environment",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.option("--no-output", is_flag=True, help="Do not print API responses")
@click.option("--dry-run", is_flag=True, help="Log requests without sending them")
@click.option("--ignore-conflicts", is_flag=True, help="Treat HTTP 409 Conflict as success")
@click.option("--no-rate-limit", is_flag=True, help="Disable client-side request pacing")
@click.version_option(__version__, prog_name="integrationcli")
@click.pass_context
def cli(ctx: click.Context, no_rate_limit: bool, **options: Any) -> None:
    """Manage Application Integration and Integration Connectors resources."""
    overrides = {k: v for k, v in options.items() if v not in (None, False)}
    if no_rate_limit:
        overrides["rate_limit"] = False
    try:
        settings = load_settings(**overrides)
    except ValidationError as e:
        raise click.UsageError(f"invalid configuration: {e}") from e

    set_invocation_id("")
    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    ctx.obj = settings


# =============================================================================
# AUTH CONFIGS
# =============================================================================


@cli.group()
def authconfigs() -> None:
    """Manage auth configurations."""


def _auth_config_id(resource: AuthConfigs, resource_id: str, name: str) -> str:
    exactly_one("id", resource_id, "name", name)
    return resource_id or resource.find(name)


@authconfigs.command("create")
@click.option("--file", "file_path", type=click.Path(dir_okay=False), help="Auth config JSON file")
@click.option(
    "--encrypted-file",
    "encrypted_file",
    type=click.Path(dir_okay=False),
    help="Auth config JSON file encrypted with Cloud KMS (base64)",
)
@click.option(
    "--encryption-keyid",
    "encryption_key",
    default="",
    help="KMS key: locations/{l}/keyRings/{r}/cryptoKeys/{k}",
)
@with_settings
def authconfigs_create(
    settings: ClientSettings,
    file_path: str | None,
    encrypted_file: str | None,
    encryption_key: str,
) -> None:
    """Create an auth config."""
    mutually_exclusive(
        "file",
        file_path,
        **{"encrypted-file": encrypted_file, "encryption-keyid": encryption_key},
    )
    both_or_neither("encrypted-file", encrypted_file, "encryption-keyid", encryption_key)
    if not file_path and not encrypted_file:
        raise click.UsageError("one of file or encrypted-file must be set")

    with IntegrationClient(settings) as client:
        resource = AuthConfigs(client)
        if encrypted_file:
            body = resource.create_from_encrypted(read_file(encrypted_file), encryption_key)
        else:
            body = resource.create(read_file(file_path))
    print_response(body, settings)


@authconfigs.command("get")
@id_or_name_options
@click.option("--minimal", is_flag=True, help="Only fields accepted by create")
@with_settings
def authconfigs_get(settings: ClientSettings, resource_id: str, name: str, minimal: bool) -> None:
    """Get an auth config by id or display name."""
    with IntegrationClient(settings) as client:
        resource = AuthConfigs(client)
        body = resource.get(_auth_config_id(resource, resource_id, name), minimal=minimal)
    print_response(body, settings)


@authconfigs.command("delete")
@id_or_name_options
@with_settings
def authconfigs_delete(settings: ClientSettings, resource_id: str, name: str) -> None:
    """Delete an auth config by id or display name."""
    with IntegrationClient(settings) as client:
        resource = AuthConfigs(client)
        body = resource.delete(_auth_config_id(resource, resource_id, name))
    print_response(body, settings)


@authconfigs.command("list")
@page_options
@with_settings
def authconfigs_list(settings: ClientSettings, page_size: int, page_token: str, filter_: str) -> None:
    """List auth configs (one page)."""
    with IntegrationClient(settings) as client:
        body = AuthConfigs(client).list_page(page_size, page_token, filter_)
    print_response(body, settings)


@authconfigs.command("patch")
@id_or_name_options
@click.option("--file", "file_path", required=True, type=click.Path(dir_okay=False))
@update_mask_option
@with_settings
def authconfigs_patch(
    settings: ClientSettings,
    resource_id: str,
    name: str,
    file_path: str,
    update_mask: tuple[str, ...],
) -> None:
    """Update an auth config."""
    content = read_file(file_path)
    with IntegrationClient(settings) as client:
        resource = AuthConfigs(client)
        body = resource.patch(
            _auth_config_id(resource, resource_id, name),
            content,
            split_mask(update_mask),
        )
    print_response(body, settings)


@authconfigs.command("export")
@click.option("--folder", required=True, type=click.Path(file_okay=False))
@with_settings
def authconfigs_export(settings: ClientSettings, folder: str) -> None:
    """Export all auth configs to authconfigs_<N>.json files."""
    with IntegrationClient(settings) as client:
        AuthConfigs(client).export(folder)


# =============================================================================
# CERTIFICATES
# =============================================================================


@cli.group()
def certificates() -> None:
    """Manage certificates."""


def _certificate_id(resource: Certificates, resource_id: str, name: str) -> str:
    exactly_one("id", resource_id, "name", name)
    return resource_id or resource.find(name)


@certificates.command("create")
@click.option("-n", "--name", default="", help="Certificate display name")
@click.option("--cert-file", "cert_file", default="", help="PEM certificate file")
@click.option("--key-file", "key_file", default="", help="PEM private key file")
@click.option("--passphrase", default="", help="Private key passphrase")
@click.option("-d", "--description", default="", help="Certificate description")
@with_settings
def certificates_create(
    settings: ClientSettings,
    name: str,
    cert_file: str,
    key_file: str,
    passphrase: str,
    description: str,
) -> None:
    """Upload a certificate."""
    require(name=name, **{"cert-file": cert_file})
    if passphrase and not key_file:
        raise click.UsageError("passphrase can only be set with key-file")
    certificate = read_file(cert_file).decode("utf-8")
    private_key = read_file(key_file).decode("utf-8") if key_file else ""

    with IntegrationClient(settings) as client:
        body = Certificates(client).create(name, certificate, description, private_key, passphrase)
    print_response(body, settings)


@certificates.command("get")
@id_or_name_options
@with_settings
def certificates_get(settings: ClientSettings, resource_id: str, name: str) -> None:
    """Get a certificate by id or display name."""
    with IntegrationClient(settings) as client:
        resource = Certificates(client)
        body = resource.get(_certificate_id(resource, resource_id, name))
    print_response(body, settings)


@certificates.command("delete")
@id_or_name_options
@with_settings
def certificates_delete(settings: ClientSettings, resource_id: str, name: str) -> None:
    """Delete a certificate by id or display name."""
    with IntegrationClient(settings) as client:
        resource = Certificates(client)
        body = resource.delete(_certificate_id(resource, resource_id, name))
    print_response(body, settings)


@certificates.command("list")
@page_options
@with_settings
def certificates_list(settings: ClientSettings, page_size: int, page_token: str, filter_: str) -> None:
    """List certificates (one page)."""
    with IntegrationClient(settings) as client:
        body = Certificates(client).list_page(page_size, page_token, filter_)
    print_response(body, settings)


@certificates.command("export")
@click.option("--folder", required=True, type=click.Path(file_okay=False))
@with_settings
def certificates_export(settings: ClientSettings, folder: str) -> None:
    """Export all certificates to certificates_<N>.json files."""
    with IntegrationClient(settings) as client:
        Certificates(client).export(folder)


# =============================================================================
# CONNECTORS
# =============================================================================


@cli.group()
def connectors() -> None:
    """Manage Integration Connectors connections."""


@connectors.command("create")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("--file", "file_path", required=True, type=click.Path(dir_okay=False))
@click.option("--sa", "service_account", default="", help="Service account name or email")
@click.option("--sa-project", "service_account_project", default="", help="Project of the service account")
@click.option("--wait", is_flag=True, help="Wait for the create operation to finish")
@with_settings
def connectors_create(
    settings: ClientSettings,
    name: str,
    file_path: str,
    service_account: str,
    service_account_project: str,
    wait: bool,
) -> None:
    """Create a connection from a request document."""
    content = read_file(file_path)
    with IntegrationClient(settings) as client:
        body = Connections(client).create(
            name,
            content,
            service_account=service_account,
            service_account_project=service_account_project,
            wait=wait,
        )
    print_response(body, settings)


@connectors.command("delete")
@click.option("-n", "--name", required=True, help="Connection name")
@with_settings
def connectors_delete(settings: ClientSettings, name: str) -> None:
    """Delete a connection."""
    with IntegrationClient(settings) as client:
        body = Connections(client).delete(name)
    print_response(body, settings)


@connectors.command("get")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("--view", type=click.Choice(["BASIC", "FULL"]), default=None)
@click.option("--minimal", is_flag=True, help="Return a request document for create")
@click.option("--overrides", is_flag=True, help="With --minimal, restore secret names and placeholders")
@with_settings
def connectors_get(
    settings: ClientSettings,
    name: str,
    view: str | None,
    minimal: bool,
    overrides: bool,
) -> None:
    """Get a connection."""
    if overrides and not minimal:
        raise click.UsageError("overrides can only be used with minimal")
    with IntegrationClient(settings) as client:
        body = Connections(client).get(name, view or "", minimal=minimal, overrides=overrides)
    print_response(body, settings)


@connectors.command("list")
@page_options
@click.option("--orderBy", "order_by", default="", help="Sort order")
@with_settings
def connectors_list(
    settings: ClientSettings,
    page_size: int,
    page_token: str,
    filter_: str,
    order_by: str,
) -> None:
    """List connections (one page)."""
    with IntegrationClient(settings) as client:
        body = Connections(client).list_page(page_size, page_token, filter_, order_by)
    print_response(body, settings)


@connectors.command("patch")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("--file", "file_path", required=True, type=click.Path(dir_okay=False))
@update_mask_option
@with_settings
def connectors_patch(
    settings: ClientSettings,
    name: str,
    file_path: str,
    update_mask: tuple[str, ...],
) -> None:
    """Update a connection."""
    content = read_file(file_path)
    with IntegrationClient(settings) as client:
        body = Connections(client).patch(name, content, split_mask(update_mask))
    print_response(body, settings)


@connectors.command("update")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("--min", "min_count", type=int, default=-1, help="Min node count for a connection")
@click.option("--max", "max_count", type=int, default=-1, help="Max node count for a connection")
@with_settings
def connectors_update(settings: ClientSettings, name: str, min_count: int, max_count: int) -> None:
    """Update the min or max node count of a connection."""
    with IntegrationClient(settings) as client:
        body = Connections(client).update_node_count(name, min_count, max_count)
    print_response(body, settings)


@connectors.command("export")
@click.option("--folder", required=True, type=click.Path(file_okay=False))
@with_settings
def connectors_export(settings: ClientSettings, folder: str) -> None:
    """Export all connections to connections_<N>.json files."""
    with IntegrationClient(settings) as client:
        Connections(client).export(folder)


@connectors.command("import")
@click.option("--folder", required=True, type=click.Path(file_okay=False))
@click.option("--wait", is_flag=True, help="Wait for each create operation to finish")
@with_settings
def connectors_import(settings: ClientSettings, folder: str, wait: bool) -> None:
    """Create the connections defined in a folder that do not exist yet."""
    with IntegrationClient(settings) as client:
        created = Connections(client).import_folder(folder, wait=wait)
    logger.info("Import finished", created=len(created))


# -----------------------------------------------------------------------------
# CONNECTORS IAM
# -----------------------------------------------------------------------------


@connectors.group("iam")
def connectors_iam() -> None:
    """Manage connection IAM policies."""


@connectors_iam.command("get")
@click.option("-n", "--name", required=True, help="Connection name")
@with_settings
def iam_get(settings: ClientSettings, name: str) -> None:
    """Get the IAM policy of a connection."""
    with IntegrationClient(settings) as client:
        body = ConnectionIam(client).get_policy(name)
    print_response(body, settings)


@connectors_iam.command("set")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("-m", "--member", required=True, help="Member email or domain")
@click.option("--role", required=True, help="admin, invoker, viewer or projects/{p}/roles/{r}")
@click.option(
    "--member-type",
    "member_type",
    default="serviceAccount",
    show_default=True,
    help="serviceAccount, group, user or domain",
)
@with_settings
def iam_set(settings: ClientSettings, name: str, member: str, role: str, member_type: str) -> None:
    """Grant a role on a connection."""
    with IntegrationClient(settings) as client:
        body = ConnectionIam(client).set_role(name, member, role, member_type)
    print_response(body, settings)


@connectors_iam.command("test")
@click.option("-n", "--name", required=True, help="Connection name")
@click.option("--permission", required=True, help="Permission to test, e.g. connectors.connections.get")
@with_settings
def iam_test(settings: ClientSettings, name: str, permission: str) -> None:
    """Test the caller's permission on a connection."""
    with IntegrationClient(settings) as client:
        body = ConnectionIam(client).test_permissions(name, permission)
    print_response(body, settings)


# -----------------------------------------------------------------------------
# CONNECTORS OPERATIONS
# -----------------------------------------------------------------------------


@connectors.group("operations")
def connectors_operations() -> None:
    """Inspect long-running connector operations."""


@connectors_operations.command("get")
@click.option("-n", "--name", required=True, help="Operation name or id")
@with_settings
def operations_get(settings: ClientSettings, name: str) -> None:
    with IntegrationClient(settings) as client:
        body = Operations(client).get(name)
    print_response(body, settings)


@connectors_operations.command("list")
@page_options
@click.option("--orderBy", "order_by", default="", help="Sort order")
@with_settings
def operations_list(
    settings: ClientSettings,
    page_size: int,
    page_token: str,
    filter_: str,
    order_by: str,
) -> None:
    with IntegrationClient(settings) as client:
        body = Operations(client).list_page(page_size, page_token, filter_, order_by)
    print_response(body, settings)


@connectors_operations.command("cancel")
@click.option("-n", "--name", required=True, help="Operation name or id")
@with_settings
def operations_cancel(settings: ClientSettings, name: str) -> None:
    with IntegrationClient(settings) as client:
        body = Operations(client).cancel(name)
    print_response(body, settings)


@connectors_operations.command("wait")
@click.option("-n", "--name", required=True, help="Operation name or id")
@with_settings
def operations_wait(settings: ClientSettings, name: str) -> None:
    """Poll an operation until it is done."""
    with IntegrationClient(settings) as client:
        operation = Operations(client).wait(name)
    print_response(operation, settings)


# -----------------------------------------------------------------------------
# CONNECTORS MANAGED ZONES
# -----------------------------------------------------------------------------


@connectors.group("zones")
def connectors_zones() -> None:
    """Manage managed zones."""


@connectors_zones.command("create")
@click.option("-n", "--name", required=True, help="Managed zone name")
@click.option("--dns", default="", help="DNS name to peer")
@click.option("--target-project", "target_project", default="", help="Project of the target VPC")
@click.option("--target-vpc", "target_vpc", default="", help="Target VPC network")
@click.option("-d", "--description", default="")
@with_settings
def zones_create(
    settings: ClientSettings,
    name: str,
    dns: str,
    target_project: str,
    target_vpc: str,
    description: str,
) -> None:
    with IntegrationClient(settings) as client:
        body = ManagedZones(client).create(name, dns, target_project, target_vpc, description)
    print_response(body, settings)


@connectors_zones.command("get")
@click.option("-n", "--name", required=True, help="Managed zone name")
@click.option("--minimal", is_flag=True, help="Only fields accepted by create")
@with_settings
def zones_get(settings: ClientSettings, name: str, minimal: bool) -> None:
    with IntegrationClient(settings) as client:
        body = ManagedZones(client).get(name, minimal=minimal)
    print_response(body, settings)


@connectors_zones.command("delete")
@click.option("-n", "--name", required=True, help="Managed zone name")
@with_settings
def zones_delete(settings: ClientSettings, name: str) -> None:
    with IntegrationClient(settings) as client:
        body = ManagedZones(client).delete(name)
    print_response(body, settings)


@connectors_zones.command("list")
@page_options
@click.option("--orderBy", "order_by", default="", help="Sort order")
@with_settings
def zones_list(
    settings: ClientSettings,
    page_size: int,
    page_token: str,
    filter_: str,
    order_by: str,
) -> None:
    with IntegrationClient(settings) as client:
        body = ManagedZones(client).list_page(page_size, page_token, filter_, order_by)
    print_response(body, settings)


# =============================================================================
# PROVISION
# =============================================================================


@cli.command("provision")
@click.option(
    "--cloudkms",
    "cloud_kms",
    default="",
    help="CMEK key version: projects/{p}/locations/{l}/keyRings/{r}/cryptoKeys/{k}/cryptoKeyVersions/{v}",
)
@click.option("--samples/--no-samples", default=True, show_default=True, help="Create sample integrations")
@click.option("--gmek/--no-gmek", default=True, show_default=True, help="Use Google-managed encryption keys")
@click.option("--sa", "service_account", default="", help="Run-as service account email")
@with_settings
def provision(
    settings: ClientSettings,
    cloud_kms: str,
    samples: bool,
    gmek: bool,
    service_account: str,
) -> None:
    """Provision Application Integration in a region."""
    with IntegrationClient(settings) as client:
        body = provision_client(client, cloud_kms, samples, gmek, service_account)
    print_response(body, settings)


def main() -> None:
    """Run the integrationcli command."""
    cli(prog_name="integrationcli")


if __name__ == "__main__":
    sys.exit(main())
