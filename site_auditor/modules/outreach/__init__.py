"""Outreach contact discovery module."""

from site_auditor.modules.outreach.contact_discovery import ContactDiscovery

__all__ = ["ContactDiscovery"]
