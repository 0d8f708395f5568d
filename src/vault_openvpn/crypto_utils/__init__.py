"""Cryptographic utilities for certificate handling."""

from .x509_utils import X509Utils, CertificateInfo
from .verification import CertificateVerifier
from .cert_formats import CertificateFormatConverter

__all__ = ['X509Utils', 'CertificateInfo', 'CertificateVerifier', 'CertificateFormatConverter']
