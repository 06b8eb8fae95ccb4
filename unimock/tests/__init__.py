"""Test suite for the unimock mock-object framework.

Organized into three categories:

1. core/: Unit tests for the core components
   - Capability description, proxies, recording, matching, behaviors,
     assertions and dummies
   - No dependency on pytest plugins or configuration loading

2. adapters/: Tests for the test-runner integration
   - Annotation-driven injection and the pytest plugin

3. fakes/: Sample dependency types and code under test
   - Type descriptions that the tests substitute
"""
