"""
Name resolver.

Two strategies, tried in order:
1. The system resolver (hosts file, NetBIOS/LLMNR where the OS does it, DNS)
2. A direct DNS lookup with the configured search list (dnspython)
"""

from __future__ import annotations

import logging
import socket

import dns.exception
import dns.resolver

logger = logging.getLogger(__name__)


class NameResolver:
    """Resolves short host names to fully-qualified names."""

    def __init__(self, dns_resolver: dns.resolver.Resolver | None = None) -> None:
        self._dns_resolver = dns_resolver

    def resolve(self, host_name: str) -> str | None:
        """
        Resolve a host name to its FQDN.

        Args:
            host_name: Short name or FQDN

        Returns:
            Lowercased FQDN, or None if both strategies fail
        """
        fqdn = self.resolve_system(host_name)
        if fqdn is None:
            logger.debug("System resolver failed for %s, trying DNS search list", host_name)
            fqdn = self.resolve_dns(host_name)

        if fqdn is None:
            logger.warning("Could not resolve %s", host_name)
        return fqdn

    def resolve_system(self, host_name: str) -> str | None:
        """Canonical name from the operating system resolver."""
        try:
            canonical, aliases, _ = socket.gethostbyname_ex(host_name)
        except (OSError, UnicodeError) as e:
            logger.debug("gethostbyname_ex(%s) failed: %s", host_name, e)
            return None

        # Prefer a dotted name when the canonical one is bare
        if "." not in canonical:
            dotted = [alias for alias in aliases if "." in alias]
            if dotted:
                canonical = dotted[0]
        return canonical.rstrip(".").lower() or None

    def resolve_dns(self, host_name: str) -> str | None:
        """Canonical name from a DNS A lookup using the search list."""
        try:
            resolver = self._get_dns_resolver()
            answer = resolver.resolve(host_name, "A", search=True)
        except dns.exception.DNSException as e:
            logger.debug("DNS lookup of %s failed: %s", host_name, e)
            return None

        return answer.canonical_name.to_text(omit_final_dot=True).lower() or None

    def _get_dns_resolver(self) -> dns.resolver.Resolver:
        # Created lazily; construction reads the system resolver configuration
        if self._dns_resolver is None:
            self._dns_resolver = dns.resolver.Resolver()
        return self._dns_resolver
