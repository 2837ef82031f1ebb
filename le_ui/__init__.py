"""Command-line front end for le-verify."""
