"""vault-openvpn - OpenVPN configuration backed by a Vault PKI."""

__version__ = "1.0.0"
