"""vault-openvpn command line interface."""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional, TextIO

from .. import __version__
from ..config_service import ConfigManager, Settings
from ..config_service.config_manager import LOG_LEVELS, OUTPUT_FORMATS, SORT_KEYS
from ..errors import VaultOpenVPNError
from .cert_issuer import CertificateLifecycle
from .output import render_json, render_table
from .vault_client import VaultClient

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Global options are accepted before or after the subcommand. Unset options
    never reach the namespace, so they do not mask other configuration sources.
    """
    global_options = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
    global_options.add_argument("--config", help="config file (default is $HOME/.config/vault-openvpn.yaml)")
    global_options.add_argument("--vault-addr", dest="vault_addr", help="Vault API address")
    global_options.add_argument(
        "--vault-token", dest="vault_token",
        help="Specify a token to use (~/.vault-token file is taken into account)",
    )
    global_options.add_argument(
        "--tls-skip-verify", dest="tls_skip_verify", action=argparse.BooleanOptionalAction,
        help="Do not verify the TLS certificate of Vault",
    )
    global_options.add_argument("--ca-cert", dest="ca_cert", help="CA bundle used to verify Vault")
    global_options.add_argument(
        "--pki-mountpoint", dest="pki_mountpoint", help="Path the PKI provider is mounted to",
    )
    global_options.add_argument(
        "--pki-role", dest="pki_role",
        help="Role defined in the PKI usable by the token and able to write the specified FQDN",
    )
    global_options.add_argument(
        "--log-level", dest="log_level", choices=LOG_LEVELS,
        help="Log level to use (debug, info, warning, error)",
    )

    parser = argparse.ArgumentParser(
        prog="vault-openvpn",
        description="Manage OpenVPN configuration combined with a Vault PKI",
        parents=[global_options],
    )

    issue_options = argparse.ArgumentParser(add_help=False)
    issue_options.add_argument(
        "--auto-revoke", dest="auto_revoke", action=argparse.BooleanOptionalAction, default=None,
        help="Automatically revoke older certificates for this FQDN",
    )
    issue_options.add_argument("--ttl", help="Set the TTL for this certificate (e.g. 8760h)")
    issue_options.add_argument(
        "--ovpn-key", dest="ovpn_key",
        help="Specify a secret name that holds an OpenVPN shared key",
    )
    issue_options.add_argument(
        "--template-path", dest="template_path",
        help="Path to read the client.conf / server.conf template from",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    client = subparsers.add_parser(
        "client", parents=[global_options, issue_options],
        help="Generate certificate and output client config",
    )
    client.add_argument("fqdn")

    server = subparsers.add_parser(
        "server", parents=[global_options, issue_options],
        help="Generate certificate and output server config",
    )
    server.add_argument("fqdn")

    list_parser = subparsers.add_parser(
        "list", parents=[global_options], help="List all valid (not expired, not revoked) certificates",
    )
    list_parser.add_argument("--sort", choices=SORT_KEYS, help="How to sort list output")
    list_parser.add_argument(
        "--format", dest="format", choices=OUTPUT_FORMATS,
        help="Format to display the certificates in",
    )
    list_parser.add_argument(
        "--list-expired", dest="list_expired", action=argparse.BooleanOptionalAction, default=None,
        help="Also list expired certificates",
    )

    revoke = subparsers.add_parser(
        "revoke", parents=[global_options], help="Revoke all certificates matching to FQDN",
    )
    revoke.add_argument("fqdn")

    revoke_serial = subparsers.add_parser(
        "revoke-serial", parents=[global_options], help="Revoke certificate by serial number",
    )
    revoke_serial.add_argument("serial")

    subparsers.add_parser("version", help="Displays the version of the utility")

    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, object]:
    return {key: getattr(args, key) for key in Settings.model_fields if getattr(args, key, None) is not None}


def run_command(args: argparse.Namespace, settings: Settings, stdout: TextIO) -> None:
    """
    Execute one subcommand.

    Raises:
        VaultOpenVPNError: If the workflow fails
    """
    lifecycle = CertificateLifecycle(settings, VaultClient(settings))

    def issue() -> None:
        lifecycle.issue(args.command, args.fqdn, stdout)

    def list_certificates() -> None:
        rows = lifecycle.list_certificates(settings.sort, settings.list_expired)
        if settings.format == "json":
            render_json(rows, stdout)
        else:
            render_table(rows, stdout)

    def revoke() -> None:
        lifecycle.revoke_by_name(args.fqdn)

    def revoke_serial() -> None:
        lifecycle.revoke_by_serial(args.serial)

    handlers: Dict[str, Callable[[], None]] = {
        "client": issue,
        "server": issue,
        "list": list_certificates,
        "revoke": revoke,
        "revoke-serial": revoke_serial,
    }
    handlers[args.command]()


def main(
    argv: Optional[List[str]] = None,
    stdout: Optional[TextIO] = None,
    config_manager: Optional[ConfigManager] = None
) -> int:
    """
    Entry point of the vault-openvpn command.

    Returns:
        Process exit code
    """
    stdout = stdout or sys.stdout
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    if args.command == "version":
        stdout.write(f"vault-openvpn {__version__}\n")
        return 0

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)

    try:
        settings = (config_manager or ConfigManager()).load(_overrides(args), getattr(args, "config", None))
        logging.getLogger().setLevel(settings.log_level_value)
        run_command(args, settings, stdout)
    except VaultOpenVPNError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
