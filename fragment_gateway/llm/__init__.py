"""Upstream access package.

Module split:
    - `provider_config`: environment-driven immutable settings.
    - `models`: static model capability registry.
    - `client`: fragment service HTTP transport and reply parsing.
"""
