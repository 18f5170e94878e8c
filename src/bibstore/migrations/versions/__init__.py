"""Bundled schema migrations, applied in filename order."""
