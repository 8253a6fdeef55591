"""Unit tests for the automatic translation pipeline.

Tests use pytest with asyncio support. The provider and the remote store are replaced by
the in-process stand-ins in ``tests.doubles``; HTTP calls are stubbed via monkeypatch.
"""
