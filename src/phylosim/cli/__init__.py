"""Command line interface for phylosim."""
