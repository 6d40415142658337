"""Result records, filters, ICMP and BACnet probe payloads, and CSV and JSON output for network surveys."""

__version__ = "0.1.0"