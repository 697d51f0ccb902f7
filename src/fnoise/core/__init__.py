"""Numerical core: noise synthesis, parallel dispatch and downscaling."""
