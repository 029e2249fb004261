"""Command-line interface for certnag."""
