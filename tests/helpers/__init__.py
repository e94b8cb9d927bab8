"""Test helper modules for the Prove test suite.

- git_helpers: real git repositories for facade, context and CLI tests
- io_utils: writing YAML/JSON fixtures and project config layers
- contexts: ExecutionContext/settings builders and a fake git facade
"""
