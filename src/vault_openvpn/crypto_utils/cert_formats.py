"""PEM text handling utilities."""

import logging
import re
from typing import List, Tuple

logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n"
    r"(?P<body>.*?)"
    r"-----END (?P=label)-----",
    re.DOTALL,
)


class CertificateFormatConverter:
    """Split and inspect PEM encoded material returned by Vault."""

    @staticmethod
    def split_pem_blocks(pem_text: str) -> List[Tuple[str, str]]:
        """
        Split PEM text into its individual blocks.

        Args:
            pem_text: Text holding zero or more PEM blocks

        Returns:
            List of (label, full block text) tuples in input order
        """
        blocks = []
        for match in _PEM_BLOCK.finditer(pem_text):
            blocks.append((match.group("label"), match.group(0) + "\n"))

        logger.debug(f"Found {len(blocks)} PEM block(s)")
        return blocks

    @staticmethod
    def has_stray_content(pem_text: str) -> bool:
        """Return True if anything other than whitespace surrounds the PEM blocks."""
        remainder = _PEM_BLOCK.sub("", pem_text)
        return bool(remainder.strip())

    @staticmethod
    def split_certificate_chain(chain_pem: str) -> List[str]:
        """
        Split a CA chain into individual certificate blocks.

        Args:
            chain_pem: PEM-encoded certificate chain

        Returns:
            List of PEM certificate blocks
        """
        return [
            block for label, block in CertificateFormatConverter.split_pem_blocks(chain_pem)
            if label == "CERTIFICATE"
        ]
