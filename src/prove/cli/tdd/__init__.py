"""TDD phase marker and evidence commands."""
