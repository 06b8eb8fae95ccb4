"""Test-runner adapters for the unimock framework.

- injection: Mock[T] / Dummy[T] annotations resolved into test objects
- pytest_plugin: registry fixture, automatic injection and logging setup
"""
